"""
Ledger query clients.
All clients implement the LedgerClientInterface so the crawlers can be pointed
at a JSON-RPC node, a hosted provider or an in-memory fake.
"""

from abc import ABC, abstractmethod
from typing import Optional

from tx_crawler.models import Block


class LedgerClientInterface(ABC):
    """Interface for block-number keyed ledger queries."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of the client for logging purposes."""
        pass

    @abstractmethod
    def get_current_height(self) -> int:
        """
        Get the number of the most recent block.

        Raises:
            ProviderUnavailableError: On network errors or timeouts
        """
        pass

    @abstractmethod
    def get_block_with_transactions(self, number: int) -> Optional[Block]:
        """
        Fetch a block together with its transaction bodies in one call.

        Args:
            number: Block number

        Returns:
            Block, or None if the provider has no such block

        Raises:
            ProviderUnavailableError: On network errors or timeouts
            RateLimitedError: If the provider throttled the call
        """
        pass

    def get_block_header(self, number: int) -> Optional[Block]:
        """
        Fetch a block when only its number and timestamp are needed.

        Clients that can skip the transaction bodies should override this.
        """
        return self.get_block_with_transactions(number)

    @abstractmethod
    def get_balance(self, address: str, block_number: int) -> int:
        """
        Get the balance of an address as of a block.

        Returns:
            int: Balance in the ledger's smallest unit (wei)

        Raises:
            ProviderUnavailableError: On network errors or timeouts
            RateLimitedError: If the provider throttled the call
        """
        pass
