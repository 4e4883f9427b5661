import pytest
from unittest.mock import Mock, patch

from tx_crawler.exceptions import (
    InvalidInputError, ProviderRejectedError, ProviderUnavailableError, RateLimitedError
)
from tx_crawler.retry import RetryPolicy, call_with_retry


def _ledger_call(side_effect):
    """A mock ledger method; backoff logs the wrapped function by name."""
    func = Mock(side_effect=side_effect)
    func.__name__ = "get_block_with_transactions"
    return func


def test_retries_transient_faults_until_success(retry_policy):
    func = _ledger_call([RateLimitedError("slow down"), ProviderUnavailableError("timeout"), 42])

    assert call_with_retry(retry_policy, func, "arg") == 42
    assert func.call_count == 3
    func.assert_called_with("arg")


def test_reraises_last_fault_after_max_tries(retry_policy):
    func = _ledger_call(ProviderUnavailableError("down"))

    with pytest.raises(ProviderUnavailableError):
        call_with_retry(retry_policy, func)

    assert func.call_count == retry_policy.max_tries


@pytest.mark.parametrize("error", [ProviderRejectedError("bad params"), InvalidInputError("bad address")])
def test_non_transient_faults_are_not_retried(retry_policy, error):
    func = _ledger_call(error)

    with pytest.raises(type(error)):
        call_with_retry(retry_policy, func)

    assert func.call_count == 1


def test_on_retry_sees_each_failed_attempt(retry_policy):
    func = _ledger_call([RateLimitedError("1"), RateLimitedError("2"), "ok"])
    seen = []

    call_with_retry(retry_policy, func, on_retry=lambda details: seen.append(details['tries']))

    assert seen == [1, 2]


def test_backoff_delays_grow_and_are_capped():
    policy = RetryPolicy(max_tries=5, backoff_factor=1.0, max_backoff_seconds=3.0)
    func = _ledger_call([RateLimitedError("x")] * 4 + ["ok"])
    waits = []

    with patch('backoff._sync.time.sleep'):
        call_with_retry(policy, func, on_retry=lambda details: waits.append(details['wait']))

    assert len(waits) == 4
    assert all(0 <= w <= 3.0 for w in waits)


def test_policy_from_settings():
    with patch.dict('os.environ', {
        'RETRY_MAX_TRIES': '5',
        'RETRY_BACKOFF_FACTOR': '0.5',
        'RETRY_MAX_BACKOFF': '8',
    }, clear=False):
        policy = RetryPolicy.from_settings()

    assert policy == RetryPolicy(max_tries=5, backoff_factor=0.5, max_backoff_seconds=8.0)
