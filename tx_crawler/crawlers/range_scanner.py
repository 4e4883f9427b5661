import itertools
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Tuple

from tx_crawler.clients.ledger import LedgerClientInterface
from tx_crawler.crawlers.base import LedgerCrawler
from tx_crawler.exceptions import ProviderExhaustedError, TransientProviderError
from tx_crawler.models import (
    Block, MatchedTransaction, ScanRange, ScanResult, ScanStatus
)
from tx_crawler.retry import RetryPolicy

# Emit a progress line every this many blocks
PROGRESS_EVERY = 1000

FetchOutcome = Tuple[int, Optional[Block], Optional[Exception]]


def _windows(scan_range: ScanRange, size: int) -> Iterator[List[int]]:
    """Split a range into consecutive ascending chunks of at most `size` blocks."""
    numbers = scan_range.block_numbers()
    window = list(itertools.islice(numbers, size))
    while window:
        yield window
        window = list(itertools.islice(numbers, size))


class RangeScanner(LedgerCrawler):
    """
    Finds every transaction sent from or to an address within a block range.

    Each block is fetched once, with its transaction bodies, and matches are
    stamped with that block's timestamp. A block whose fetch keeps failing
    after the retry policy is exhausted is skipped and reported on the result;
    the scan moves on to the next block number.

    With `max_concurrency > 1` blocks are fetched in windows of that size on a
    thread pool, and results are still assembled in ascending block order.
    """

    def __init__(self, ledger_client: LedgerClientInterface,
                 retry_policy: Optional[RetryPolicy] = None,
                 max_concurrency: int = 1, verbose: bool = True):
        super().__init__(ledger_client, retry_policy, verbose)
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency

    def scan(self, address: str, scan_range: ScanRange,
             cancel_event: Optional[threading.Event] = None,
             timeout: Optional[float] = None,
             on_block: Optional[Callable[[int, int], None]] = None) -> ScanResult:
        """
        Scan `scan_range` for transactions involving `address`.

        Args:
            address: Address to match against `from` / `to`, any letter case
            scan_range: Inclusive block bounds; an inverted range returns at once
            cancel_event: Checked between fetches; when set the scan stops and
                returns what it has with status Cancelled
            timeout: Wall-clock seconds for the whole scan; expiry is handled
                like cancellation
            on_block: Called as on_block(block_number, matches_so_far) after
                each block is processed

        Returns:
            ScanResult with matches in block order, then in-block order

        Raises:
            ProviderRejectedError: The provider refused a request outright
            ProviderExhaustedError: Every block fetch in an uncancelled scan failed
        """
        result = ScanResult(range=scan_range)
        if scan_range.is_empty:
            return result

        address_key = address.lower()
        deadline = time.monotonic() + timeout if timeout is not None else None
        failed = 0

        self._log(
            f"Scanning blocks {scan_range.start_block}..{scan_range.end_block} "
            f"({len(scan_range)} blocks) for {address} via {self.ledger_client.name}"
        )

        executor = ThreadPoolExecutor(max_workers=self.max_concurrency) if self.max_concurrency > 1 else None
        try:
            for window in _windows(scan_range, self.max_concurrency):
                if result.status == ScanStatus.CANCELLED:
                    break
                if self._should_stop(cancel_event, deadline):
                    result.status = ScanStatus.CANCELLED
                    break

                for index, (number, block, error) in enumerate(self._fetch_window(window, executor)):
                    # rest of an already-fetched window is dropped once cancelled
                    if index and self._should_stop(cancel_event, deadline):
                        result.status = ScanStatus.CANCELLED
                        break
                    result.blocks_scanned += 1
                    if error is not None:
                        failed += 1
                        result.skipped_blocks.append(number)
                        self._log(f"⚠️  Skipping block {number} after {self.retry_policy.max_tries} attempts: {error}")
                    elif block is not None:
                        result.transactions.extend(
                            MatchedTransaction.from_block(tx, block)
                            for tx in block.transactions
                            if tx.involves(address_key)
                        )

                    if on_block is not None:
                        on_block(number, len(result.transactions))
                    if result.blocks_scanned % PROGRESS_EVERY == 0:
                        self._log(f"  ... block {number}: {len(result.transactions)} matches so far")
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        cancelled = result.status == ScanStatus.CANCELLED
        if not cancelled and result.blocks_scanned and failed == result.blocks_scanned:
            raise ProviderExhaustedError(
                f"All {failed} block fetches failed between {scan_range.start_block} and {result.skipped_blocks[-1]}"
            )

        if not cancelled and result.skipped_blocks:
            result.status = ScanStatus.PARTIAL_DUE_TO_FAULTS

        self._log(
            f"✓ Scan {result.status.value}: {len(result.transactions)} matches in "
            f"{result.blocks_scanned} blocks, {len(result.skipped_blocks)} skipped"
        )
        return result

    @staticmethod
    def _should_stop(cancel_event: Optional[threading.Event], deadline: Optional[float]) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return deadline is not None and time.monotonic() >= deadline

    def _fetch_block(self, number: int) -> FetchOutcome:
        """Fetch one block; a transient fault that outlives its retries is returned, not raised."""
        try:
            block = self._fetch(f"block {number}", self.ledger_client.get_block_with_transactions, number)
        except TransientProviderError as e:
            return number, None, e
        return number, block, None

    def _fetch_window(self, window: List[int], executor: Optional[ThreadPoolExecutor]) -> List[FetchOutcome]:
        if executor is None:
            return [self._fetch_block(number) for number in window]
        # map() yields in submission order, whatever order the fetches finish in
        return list(executor.map(self._fetch_block, window))
