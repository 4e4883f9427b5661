import time
from datetime import datetime
from typing import Optional

from tx_crawler.clients.ledger import LedgerClientInterface
from tx_crawler.retry import RetryPolicy, call_with_retry


class LedgerCrawler:
    """Shared plumbing for components that query the ledger block by block."""

    def __init__(self, ledger_client: LedgerClientInterface,
                 retry_policy: Optional[RetryPolicy] = None, verbose: bool = True):
        self.ledger_client = ledger_client
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self.verbose = verbose

    # -------------------------------------------------------------------------
    # Lightweight logging / timing helpers
    # -------------------------------------------------------------------------
    def _log(self, msg: str):
        """Print a timestamped log message."""
        if not self.verbose:
            return
        ts = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        print(f"{ts}  {msg}")

    def _timed_call(self, label: str, func, *args, **kwargs):
        """Call func(*args, **kwargs) while logging start/end and elapsed time."""
        start = time.time()
        self._log(f"{label} — start")
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            elapsed = time.time() - start
            self._log(f"{label} — failed after {elapsed:.2f}s: {e}")
            raise
        self._log(f"{label} — done in {time.time() - start:.2f}s")
        return result

    def _fetch(self, label: str, func, *args):
        """Call a ledger client method under the retry policy."""
        def _on_retry(details):
            self._log(
                f"⚠️  {label}: attempt {details['tries']} failed "
                f"({details['exception']}), retrying in {details['wait']:.1f}s"
            )
        return call_with_retry(self.retry_policy, func, *args, on_retry=_on_retry)
