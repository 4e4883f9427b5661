from typing import Optional

from tx_crawler.clients.ledger import LedgerClientInterface
from tx_crawler.crawlers.base import LedgerCrawler
from tx_crawler.exceptions import (
    InvalidInputError, ProviderExhaustedError, TransientProviderError
)
from tx_crawler.models import Confidence, ResolvedBlock
from tx_crawler.retry import RetryPolicy


class BlockTimeResolver(LedgerCrawler):
    """
    Maps a Unix timestamp to the highest block whose timestamp is <= it.

    Binary search over block numbers. Block timestamps are assumed to be
    non-decreasing in block number; the ledger doesn't guarantee this and no
    attempt is made to detect inversions.
    """

    def __init__(self, ledger_client: LedgerClientInterface,
                 retry_policy: Optional[RetryPolicy] = None,
                 earliest_block: int = 1, verbose: bool = True):
        super().__init__(ledger_client, retry_policy, verbose)
        self.earliest_block = earliest_block

    def _probe(self, number: int) -> Optional[int]:
        """Timestamp of a block, or None when it can't be read after retries."""
        try:
            block = self._fetch(f"probe {number}", self.ledger_client.get_block_header, number)
        except TransientProviderError as e:
            self._log(f"⚠️  Probe of block {number} failed after {self.retry_policy.max_tries} attempts: {e}")
            return None
        if block is None:
            self._log(f"⚠️  Provider has no block {number}")
            return None
        return block.timestamp

    def resolve_block_at_or_before(self, target_timestamp: int, current_height: int) -> ResolvedBlock:
        """
        Find the latest block at or before `target_timestamp`.

        Returns:
            ResolvedBlock. Confidence is Degraded when the target predates the
            earliest block or when a probe failed and the search stopped at the
            nearest bound it had confirmed.

        Raises:
            InvalidInputError: If current_height is below the earliest block
            ProviderExhaustedError: If not a single probe succeeded
        """
        if current_height < self.earliest_block:
            raise InvalidInputError(
                f"current height {current_height} is below the earliest block {self.earliest_block}"
            )

        low = self.earliest_block
        high = current_height
        best = high
        best_timestamp = None
        confirmed = False
        probes = 0
        degraded = False

        while low <= high:
            mid = (low + high) // 2
            timestamp = self._probe(mid)
            if timestamp is None:
                degraded = True
                break
            probes += 1
            if timestamp <= target_timestamp:
                best, best_timestamp, confirmed = mid, timestamp, True
                low = mid + 1
            else:
                high = mid - 1

        if probes == 0:
            raise ProviderExhaustedError(
                f"Could not read any block while resolving timestamp {target_timestamp}"
            )

        if not confirmed:
            # Target precedes every block probed; only the earliest block is left
            self._log(f"⚠️  Timestamp {target_timestamp} is before block {self.earliest_block}")
            return ResolvedBlock(self.earliest_block, Confidence.DEGRADED, None, probes)

        confidence = Confidence.DEGRADED if degraded else Confidence.EXACT
        self._log(f"✓ Timestamp {target_timestamp} → block {best} ({confidence.value}, {probes} probes)")
        return ResolvedBlock(best, confidence, best_timestamp, probes)
