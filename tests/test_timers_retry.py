import pytest

from dialogbridge.bridge import create_loopback_pair
from dialogbridge.promise import Deferred, Promise, RetryPolicy, delay, timeout, with_retry
from dialogbridge.utils.exceptions import RemoteError


@pytest.mark.asyncio
async def test_delay_resolves_with_values():
    assert await delay(0.01, "tick") == "tick"


@pytest.mark.asyncio
async def test_timeout_rejects_slow_promise():
    never = Deferred()
    with pytest.raises(TimeoutError, match="too slow"):
        await timeout(never.promise, 0.01, "too slow")


@pytest.mark.asyncio
async def test_timeout_passes_fast_result():
    assert await timeout(Promise.resolved(5), 1.0) == 5


@pytest.mark.asyncio
async def test_with_retry_reissues_until_success():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            return Promise.rejected(ConnectionError("again"))
        return Promise.resolved("ok")

    result = await with_retry(flaky, RetryPolicy(max_attempts=3, base_delay_seconds=0.0))
    assert result == "ok"
    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_with_retry_gives_up_with_last_error():
    async def always_fails():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError, match="down"):
        await with_retry(always_fails, RetryPolicy(max_attempts=2, base_delay_seconds=0.0))


@pytest.mark.asyncio
async def test_with_retry_does_not_retry_unlisted_errors():
    attempts = []

    async def wrong_type():
        attempts.append(1)
        raise KeyError("no")

    with pytest.raises(KeyError):
        await with_retry(wrong_type, RetryPolicy(max_attempts=5, base_delay_seconds=0.0, retry_on=(ConnectionError,)))
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_with_retry_only_reissues_listed_remote_types():
    attempts = []

    def remote_failure():
        attempts.append(1)
        kind = "ConnectionError" if len(attempts) == 1 else "ZeroDivisionError"
        return Promise.rejected(RemoteError(kind, "remote side failed"))

    policy = RetryPolicy(max_attempts=5, base_delay_seconds=0.0, remote_types=("ConnectionError",))
    with pytest.raises(RemoteError) as info:
        await with_retry(remote_failure, policy)
    assert info.value.type == "ZeroDivisionError"
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_with_retry_reissues_bridge_get():
    dialog, host, _link = create_loopback_pair()
    calls = []

    def flaky_add(_context, x, y):
        calls.append((x, y))
        if len(calls) < 2:
            raise ConnectionError("busy")
        return x + y

    host.on("add", flaky_add)
    result = await with_retry(lambda: dialog.get("add", 2, 3), RetryPolicy(base_delay_seconds=0.0))
    assert result == 5
    assert calls == [(2, 3), (2, 3)]


def test_retry_policy_backoff_is_capped():
    policy = RetryPolicy(base_delay_seconds=1.0, max_delay_seconds=3.0)
    assert [policy.backoff(n) for n in range(4)] == [1.0, 2.0, 3.0, 3.0]
