import pytest

from vaultscribe.errors import DecodeError, TerminalCallError, TransientCallError
from vaultscribe.services.retry import RetryPolicy, with_retry


@pytest.mark.asyncio
async def test_always_failing_call_exhausts_three_attempts(fake_sleep):
    calls = {"count": 0}

    async def flaky():
        calls["count"] += 1
        raise TransientCallError(f"boom {calls['count']}")

    policy = RetryPolicy(max_attempts=3, base_delay=1.0, context="Chunk 1 transcription", sleep=fake_sleep)
    with pytest.raises(TerminalCallError) as excinfo:
        await policy.call(flaky)

    assert calls["count"] == 3
    assert fake_sleep.delays == [1.0, 2.0]
    assert "3" in str(excinfo.value)
    assert "Chunk 1 transcription failed after 3 attempts: boom 3" == str(excinfo.value)
    assert excinfo.value.attempts == 3
    assert isinstance(excinfo.value.last_error, TransientCallError)
    assert excinfo.value.__cause__ is excinfo.value.last_error


@pytest.mark.asyncio
async def test_recovers_after_transient_failure(fake_sleep):
    outcomes = [ConnectionError("reset"), "ok"]

    async def call():
        outcome = outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    result = await RetryPolicy(sleep=fake_sleep).call(call)
    assert result == "ok"
    assert fake_sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_backoff_doubles_per_attempt(fake_sleep):
    async def failing():
        raise TimeoutError("slow")

    policy = RetryPolicy(max_attempts=5, base_delay=0.5, sleep=fake_sleep)
    with pytest.raises(TerminalCallError):
        await policy.call(failing)
    assert fake_sleep.delays == [0.5, 1.0, 2.0, 4.0]


@pytest.mark.asyncio
async def test_non_retryable_errors_are_raised_immediately(fake_sleep):
    calls = {"count": 0}

    async def broken():
        calls["count"] += 1
        raise DecodeError("corrupt")

    with pytest.raises(DecodeError):
        await RetryPolicy(sleep=fake_sleep).call(broken)
    assert calls["count"] == 1
    assert fake_sleep.delays == []


@pytest.mark.asyncio
async def test_with_retry_helper():
    attempts = []

    async def failing():
        attempts.append(1)
        raise RuntimeError("nope")

    with pytest.raises(TerminalCallError) as excinfo:
        await with_retry(failing, max_attempts=2, base_delay=0, context="Editor request")
    assert len(attempts) == 2
    assert str(excinfo.value) == "Editor request failed after 2 attempts: nope"


def test_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
