import asyncio

import pytest

from interview_partner.core.session_locks import SessionLocks


class TestSessionLocks:
    def test_same_session_runs_one_at_a_time(self):
        locks = SessionLocks()
        events: list[str] = []

        async def work(name: str):
            async with locks.hold("session-1"):
                events.append(f"{name} start")
                await asyncio.sleep(0.01)
                events.append(f"{name} end")

        async def run():
            await asyncio.gather(work("a"), work("b"))

        asyncio.run(run())

        assert events == ["a start", "a end", "b start", "b end"]

    def test_different_sessions_do_not_block_each_other(self):
        locks = SessionLocks()
        events: list[str] = []

        async def work(session_id: str):
            async with locks.hold(session_id):
                events.append(f"{session_id} start")
                await asyncio.sleep(0.01)
                events.append(f"{session_id} end")

        async def run():
            await asyncio.gather(work("one"), work("two"))

        asyncio.run(run())

        assert events[:2] == ["one start", "two start"]

    def test_lock_is_released_on_error(self):
        locks = SessionLocks()

        async def fail():
            async with locks.hold("session-1"):
                raise ValueError("boom")

        with pytest.raises(ValueError):
            asyncio.run(fail())

        assert len(locks) == 0

    def test_registry_is_empty_after_use(self):
        locks = SessionLocks()

        async def run():
            async with locks.hold("session-1"):
                assert len(locks) == 1

        asyncio.run(run())

        assert len(locks) == 0
