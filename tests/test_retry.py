import asyncio
import logging

import pytest

from snapshot.retry import with_retry


class Flaky:
    def __init__(self, failures: int, result="ok"):
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"boom {self.calls}")
        return self.result


async def test_succeeds_after_transient_failures():
    op = Flaky(failures=2)
    assert await with_retry(op, max_attempts=3, delay=0) == "ok"
    assert op.calls == 3


async def test_last_failure_propagates():
    op = Flaky(failures=10)
    with pytest.raises(ConnectionError, match="boom 3"):
        await with_retry(op, max_attempts=3, delay=0)
    assert op.calls == 3


async def test_single_attempt_does_not_retry():
    op = Flaky(failures=1)
    with pytest.raises(ConnectionError):
        await with_retry(op, max_attempts=1, delay=0)
    assert op.calls == 1


async def test_rejects_non_positive_attempts():
    with pytest.raises(ValueError):
        await with_retry(Flaky(0), max_attempts=0)


@pytest.fixture
def sleeps(monkeypatch):
    recorded = []

    async def fake_sleep(seconds):
        recorded.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return recorded


async def test_waits_a_fixed_delay_between_attempts_only(sleeps):
    op = Flaky(failures=10)
    with pytest.raises(ConnectionError):
        await with_retry(op, max_attempts=4, delay=2.0)

    assert op.calls == 4
    assert sleeps == [2.0, 2.0, 2.0]


async def test_no_wait_after_success(sleeps):
    op = Flaky(failures=1)
    assert await with_retry(op, max_attempts=4, delay=2.0) == "ok"
    assert sleeps == [2.0]


async def test_every_failed_attempt_is_logged(caplog):
    op = Flaky(failures=10)
    with caplog.at_level(logging.WARNING, logger="snapshot.retry"):
        with pytest.raises(ConnectionError):
            await with_retry(op, max_attempts=3, delay=0)

    retries = [r.getMessage() for r in caplog.records if "Retry [" in r.getMessage()]
    assert retries == [
        "[Retry] Retry [1/3]: boom 1",
        "[Retry] Retry [2/3]: boom 2",
        "[Retry] Retry [3/3]: boom 3",
    ]
