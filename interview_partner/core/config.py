import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "openai/gpt-oss-20b:free"
DEFAULT_APP_URL = "http://localhost:3000"
DEFAULT_ALLOWED_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
APP_TITLE = "AI Interview Practice Partner"


class Settings(BaseModel):
    """Runtime configuration read from the process environment."""

    openrouter_api_key: str | None = None
    openrouter_base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    app_url: str = DEFAULT_APP_URL
    app_title: str = APP_TITLE
    allowed_origins: list[str] = Field(default_factory=lambda: DEFAULT_ALLOWED_ORIGINS.split(","))

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        if load_env_file:
            load_dotenv()

        api_key = os.getenv("OPENROUTER_API_KEY", "").strip() or None
        origins = os.getenv("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS)
        return cls(
            openrouter_api_key=api_key,
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", DEFAULT_BASE_URL),
            model=os.getenv("INTERVIEW_PARTNER_MODEL", DEFAULT_MODEL),
            app_url=os.getenv("APP_URL", DEFAULT_APP_URL),
            allowed_origins=[origin.strip() for origin in origins.split(",") if origin.strip()],
        )
