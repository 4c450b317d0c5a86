import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_CONTENT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from interview_partner import __version__
from interview_partner.api.dependencies import get_settings
from interview_partner.api.middleware import (
    SERVICE_BUSY_MESSAGE,
    ExceptionHandlingMiddleware,
    RequestIDMiddleware,
    error_response,
)
from interview_partner.api.routes import interviews, llm
from interview_partner.core.exceptions import (
    QuestionGenerationError,
    SessionCompletedError,
    SessionNotFoundError,
)
from interview_partner.core.logging import log_event
from interview_partner.providers import ConfigurationError, ExhaustedRetriesError

app = FastAPI(
    title="Interview Partner API",
    description="HTTP API for practising mock interviews with an AI interviewer",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
    max_age=86400,
)
app.add_middleware(ExceptionHandlingMiddleware)
# Added last so it wraps everything and the request ID is bound for every log line
app.add_middleware(RequestIDMiddleware)

app.include_router(interviews.router, prefix="/api", tags=["interviews"])
app.include_router(llm.router, prefix="/api", tags=["llm"])


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(HTTP_422_UNPROCESSABLE_CONTENT, "ValidationError", "Request validation failed", str(exc))


@app.exception_handler(SessionNotFoundError)
async def session_not_found_exception_handler(request: Request, exc: SessionNotFoundError):
    return error_response(HTTP_404_NOT_FOUND, "SessionNotFound", str(exc))


@app.exception_handler(SessionCompletedError)
async def session_completed_exception_handler(request: Request, exc: SessionCompletedError):
    return error_response(HTTP_409_CONFLICT, "SessionCompleted", str(exc))


@app.exception_handler(ConfigurationError)
async def configuration_exception_handler(request: Request, exc: ConfigurationError):
    log_event("api.configuration_error", level=logging.ERROR, component="api", error_msg=str(exc))
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "ConfigurationError", str(exc))


@app.exception_handler(ExhaustedRetriesError)
async def exhausted_retries_exception_handler(request: Request, exc: ExhaustedRetriesError):
    log_event(
        "api.service_busy",
        level=logging.ERROR,
        component="api",
        attempts=exc.attempts,
        status=exc.last_error.status,
        error_msg=str(exc.last_error),
    )
    return error_response(HTTP_503_SERVICE_UNAVAILABLE, "ServiceBusy", SERVICE_BUSY_MESSAGE)


@app.exception_handler(QuestionGenerationError)
async def question_generation_exception_handler(request: Request, exc: QuestionGenerationError):
    return error_response(HTTP_502_BAD_GATEWAY, "QuestionGenerationFailed", str(exc))


@app.get("/")
async def root():
    return {"message": "Interview Partner API", "version": __version__}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "llm_configured": bool(get_settings().openrouter_api_key)}
