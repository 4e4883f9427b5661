"""
Bounded exponential backoff for ledger provider calls.

Transient faults (timeouts, throttling) are retried up to `max_tries`; anything
else propagates on the first attempt. Once the attempts are used up the last
transient error is re-raised so the caller can decide whether to skip a block
or degrade a search.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import backoff

from tx_crawler.config import RetrySettings
from tx_crawler.exceptions import TransientProviderError


@dataclass(frozen=True)
class RetryPolicy:
    max_tries: int = 4
    backoff_factor: float = 1.0
    max_backoff_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Optional[RetrySettings] = None) -> "RetryPolicy":
        settings = settings or RetrySettings()
        return cls(
            max_tries=settings.max_tries,
            backoff_factor=settings.backoff_factor,
            max_backoff_seconds=settings.max_backoff_seconds,
        )


def call_with_retry(policy: RetryPolicy, func: Callable, *args,
                    on_retry: Optional[Callable[[dict], None]] = None, **kwargs):
    """Call func(*args, **kwargs), retrying transient provider faults.

    `on_retry` receives backoff's details dict (tries, wait, exception) before
    each sleep.
    """
    handlers = [on_retry] if on_retry else []
    retrying = backoff.on_exception(
        backoff.expo,
        TransientProviderError,
        max_tries=policy.max_tries,
        factor=policy.backoff_factor,
        max_value=policy.max_backoff_seconds,
        on_backoff=handlers,
    )(func)
    return retrying(*args, **kwargs)
