"""
Unit tests for the bounded retry helper
"""

from unittest.mock import AsyncMock

import pytest

from services.execution import OperationFailed, RetryPolicy, is_nonce_error, with_retry


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts_plus_one():
    """3 retries means 4 calls in total"""
    operation = AsyncMock(side_effect=RuntimeError("rpc down"))

    with pytest.raises(OperationFailed) as exc_info:
        await with_retry(operation, RetryPolicy(max_attempts=3, delay=0), operation_name="transfer_native")

    assert operation.await_count == 4
    assert exc_info.value.attempts == 4
    assert exc_info.value.operation == "transfer_native"
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert "rpc down" in str(exc_info.value)


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures():
    operation = AsyncMock(side_effect=[RuntimeError("timeout"), RuntimeError("timeout"), {"txHash": "0x1"}])

    result = await with_retry(operation, RetryPolicy(max_attempts=3, delay=0))

    assert result == {"txHash": "0x1"}
    assert operation.await_count == 3


@pytest.mark.asyncio
async def test_first_success_calls_once():
    operation = AsyncMock(return_value=42)
    assert await with_retry(operation, RetryPolicy(delay=0)) == 42
    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_zero_retries():
    operation = AsyncMock(side_effect=ValueError("bad"))
    with pytest.raises(OperationFailed) as exc_info:
        await with_retry(operation, RetryPolicy(max_attempts=0, delay=0))
    assert operation.await_count == 1
    assert exc_info.value.attempts == 1


@pytest.mark.asyncio
async def test_delay_between_attempts(monkeypatch):
    """Flat delay before every retry, none before the first call"""
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr("services.execution.retry.asyncio.sleep", fake_sleep)
    operation = AsyncMock(side_effect=[RuntimeError("x"), RuntimeError("x"), "ok"])

    await with_retry(operation, RetryPolicy(max_attempts=3, delay=2.0))

    assert sleeps == [2.0, 2.0]


@pytest.mark.asyncio
async def test_nonce_error_is_retried():
    operation = AsyncMock(side_effect=[RuntimeError("nonce too low: next nonce 12"), "0xabc"])
    assert await with_retry(operation, RetryPolicy(delay=0)) == "0xabc"


def test_is_nonce_error():
    assert is_nonce_error(RuntimeError("Nonce has already been used"))
    assert is_nonce_error(ValueError("replacement transaction underpriced"))
    assert not is_nonce_error(RuntimeError("insufficient funds"))


def test_policy_serialization_defaults():
    policy = RetryPolicy.from_dict({})
    assert policy == RetryPolicy(max_attempts=3, delay=2.0)
    assert policy.total_attempts == 4
    assert RetryPolicy.from_dict(RetryPolicy(1, 0.5).to_dict()) == RetryPolicy(1, 0.5)
