import threading
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Optional, Union

from tx_crawler.address import short_address, validate_address
from tx_crawler.clients.ledger import LedgerClientInterface
from tx_crawler.config import ScanSettings
from tx_crawler.crawlers.base import LedgerCrawler
from tx_crawler.crawlers.block_resolver import BlockTimeResolver
from tx_crawler.crawlers.range_scanner import RangeScanner
from tx_crawler.exceptions import (
    InvalidInputError, ProviderExhaustedError, TransientProviderError
)
from tx_crawler.models import HistoricalBalance, ScanRange, ScanResult
from tx_crawler.retry import RetryPolicy

CalendarDate = Union[date, datetime, str]


class WalletActivityService(LedgerCrawler):
    """
    Entry point for the surrounding application (CLI, UI).

    Implements:
    - Transaction scan over a block range, defaulting to the last
      `default_window_blocks` blocks
    - Balance of an address as of a calendar date
    """

    def __init__(self, ledger_client: LedgerClientInterface,
                 scan_settings: Optional[ScanSettings] = None,
                 retry_policy: Optional[RetryPolicy] = None):
        self.config = scan_settings or ScanSettings()
        super().__init__(ledger_client, retry_policy, self.config.verbose)
        self.scanner = RangeScanner(
            ledger_client,
            retry_policy=self.retry_policy,
            max_concurrency=self.config.max_concurrency,
            verbose=self.config.verbose,
        )
        self.resolver = BlockTimeResolver(
            ledger_client,
            retry_policy=self.retry_policy,
            verbose=self.config.verbose,
        )

    def get_current_height(self) -> int:
        try:
            return self._fetch("current height", self.ledger_client.get_current_height)
        except TransientProviderError as e:
            raise ProviderExhaustedError(f"Could not read the current block height: {e}") from e

    @staticmethod
    def _check_bounds(start_block: Optional[int], end_block: Optional[int]):
        for label, bound in (("start block", start_block), ("end block", end_block)):
            if bound is not None and bound < 0:
                raise InvalidInputError(f"{label} must not be negative, got {bound}")

    @staticmethod
    def _resolve_scan_range(
        current_height: int,
        start_block: Optional[int],
        end_block: Optional[int],
        window: int,
        genesis: int = 0,
    ) -> ScanRange:
        """Fill in default bounds and clamp them to [genesis, current_height]."""
        WalletActivityService._check_bounds(start_block, end_block)

        scan_range = ScanRange.default(current_height, window, genesis)
        if start_block is not None:
            scan_range = replace(scan_range, start_block=max(genesis, start_block))
        if end_block is not None:
            scan_range = replace(scan_range, end_block=min(end_block, current_height))
        return scan_range

    def scan_transactions(
        self,
        address: str,
        start_block: Optional[int] = None,
        end_block: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
        timeout: Optional[float] = None,
        on_block: Optional[Callable[[int, int], None]] = None,
    ) -> ScanResult:
        """
        Find transactions sent from or to `address`.

        Args:
            address: 0x-prefixed account address
            start_block: First block to scan (default: chain head minus the window)
            end_block: Last block to scan (default and upper clamp: chain head)
            cancel_event: Set it from another thread to stop the scan early
            timeout: Scan-level wall-clock limit (default: SCAN_TIMEOUT)
            on_block: Progress callback, see RangeScanner.scan

        Returns:
            ScanResult; check `status` before treating it as complete

        Raises:
            InvalidInputError: Malformed address or negative bound
            ProviderExhaustedError: The provider could not be reached at all
        """
        address = validate_address(address)
        self._check_bounds(start_block, end_block)
        if start_block is not None and end_block is not None and start_block > end_block:
            self._log(f"Start block {start_block} is after end block {end_block}; nothing to scan")
            return ScanResult(range=ScanRange(start_block, end_block))

        current_height = self.get_current_height()
        scan_range = self._resolve_scan_range(
            current_height,
            start_block,
            end_block,
            self.config.default_window_blocks,
            self.config.genesis_block,
        )
        if timeout is None:
            timeout = self.config.scan_timeout_seconds

        return self._timed_call(
            f"Transactions for {short_address(address)}",
            self.scanner.scan,
            address,
            scan_range,
            cancel_event=cancel_event,
            timeout=timeout,
            on_block=on_block,
        )

    @staticmethod
    def _to_target_timestamp(calendar_date: CalendarDate) -> int:
        """Unix timestamp for a date (00:00:00 UTC) or a datetime (naive = UTC)."""
        if isinstance(calendar_date, str):
            text = calendar_date.strip()
            try:
                calendar_date = date.fromisoformat(text)
            except ValueError:
                try:
                    calendar_date = datetime.fromisoformat(text.replace('Z', '+00:00'))
                except ValueError:
                    raise InvalidInputError(f"Unparseable date: {text!r} (expected YYYY-MM-DD)") from None

        if isinstance(calendar_date, datetime):
            if calendar_date.tzinfo is None:
                calendar_date = calendar_date.replace(tzinfo=timezone.utc)
            return int(calendar_date.timestamp())
        if isinstance(calendar_date, date):
            return int(datetime(calendar_date.year, calendar_date.month, calendar_date.day,
                                tzinfo=timezone.utc).timestamp())
        raise InvalidInputError(f"Unsupported date value: {calendar_date!r}")

    def get_balance_at_date(self, address: str, calendar_date: CalendarDate) -> HistoricalBalance:
        """
        Balance of `address` at the latest block on or before `calendar_date`.

        Returns:
            HistoricalBalance whose confidence is the block resolution's confidence

        Raises:
            InvalidInputError: Malformed address or date
            ProviderExhaustedError: Height, every probe, or the balance read failed
        """
        address = validate_address(address)
        target_timestamp = self._to_target_timestamp(calendar_date)
        current_height = self.get_current_height()

        resolved = self._timed_call(
            f"Block at timestamp {target_timestamp}",
            self.resolver.resolve_block_at_or_before,
            target_timestamp,
            current_height,
        )

        try:
            raw_amount = self._fetch(
                f"balance of {short_address(address)} at {resolved.number}",
                self.ledger_client.get_balance,
                address,
                resolved.number,
            )
        except TransientProviderError as e:
            raise ProviderExhaustedError(f"Could not read balance at block {resolved.number}: {e}") from e

        return HistoricalBalance(
            address=address,
            block_number=resolved.number,
            raw_amount=raw_amount,
            confidence=resolved.confidence,
            target_timestamp=target_timestamp,
        )
