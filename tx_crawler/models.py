from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

WEI_PER_ETHER = 10 ** 18


def wei_to_ether(value: int) -> Decimal:
    """Convert an integer amount in wei to ether without going through float."""
    return Decimal(int(value)) / Decimal(WEI_PER_ETHER)


def format_ether(amount: Decimal) -> str:
    """Plain decimal notation with trailing zeros dropped (1.23E-7 -> 0.000000123)."""
    return f"{amount.normalize():f}"


def parse_quantity(value: Any) -> int:
    """Decode a JSON-RPC quantity ("0x1b4") or pass through a plain integer."""
    if isinstance(value, str):
        return int(value, 16) if value.lower().startswith("0x") else int(value)
    return int(value)


class ScanStatus(Enum):
    """Completeness classification of a range scan."""
    COMPLETE = "Complete"
    CANCELLED = "Cancelled"
    PARTIAL_DUE_TO_FAULTS = "PartialDueToFaults"


class Confidence(Enum):
    """Whether a resolved block (and the balance read at it) is provably correct."""
    EXACT = "Exact"
    DEGRADED = "Degraded"


@dataclass(frozen=True)
class Transaction:
    """A transaction as returned inside a block."""
    hash: str
    from_address: str
    to_address: Optional[str]  # None for contract creation
    value: int  # wei

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Transaction":
        return cls(
            hash=data["hash"],
            from_address=data["from"],
            to_address=data.get("to") or None,
            value=parse_quantity(data.get("value", 0)),
        )

    def involves(self, address_key: str) -> bool:
        """True if the lower-cased address is the sender or the recipient."""
        if self.from_address.lower() == address_key:
            return True
        return self.to_address is not None and self.to_address.lower() == address_key


@dataclass(frozen=True)
class Block:
    """A block with its (optional) transaction bodies."""
    number: int
    timestamp: int
    transactions: Tuple[Transaction, ...] = ()

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "Block":
        # Blocks fetched without bodies carry hashes only
        transactions = tuple(
            Transaction.from_rpc(tx) for tx in data.get("transactions", []) if isinstance(tx, dict)
        )
        return cls(
            number=parse_quantity(data["number"]),
            timestamp=parse_quantity(data["timestamp"]),
            transactions=transactions,
        )


@dataclass(frozen=True)
class MatchedTransaction:
    """A transaction touching the scanned address, stamped with its block's time."""
    hash: str
    from_address: str
    to_address: Optional[str]
    value: Decimal  # ether
    timestamp: int
    block_number: int

    @classmethod
    def from_block(cls, tx: Transaction, block: Block) -> "MatchedTransaction":
        return cls(
            hash=tx.hash,
            from_address=tx.from_address,
            to_address=tx.to_address,
            value=wei_to_ether(tx.value),
            timestamp=block.timestamp,
            block_number=block.number,
        )

    @property
    def date(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S')

    def to_row(self) -> List[Any]:
        """Convert to a table row for display."""
        return [
            self.date,
            self.block_number,
            self.from_address,
            self.to_address or "",
            format_ether(self.value),
            self.hash,
        ]

    @classmethod
    def row_headers(cls) -> List[str]:
        return ["Date", "Block", "From", "To", "Amount (ETH)", "Hash"]


@dataclass(frozen=True)
class ScanRange:
    """Inclusive block interval. An inverted range scans nothing."""
    start_block: int
    end_block: int

    @classmethod
    def default(cls, current_height: int, window: int = 10000, genesis: int = 0) -> "ScanRange":
        """The last `window` blocks up to the chain head, never below genesis."""
        return cls(max(genesis, current_height - window), current_height)

    @property
    def is_empty(self) -> bool:
        return self.start_block > self.end_block

    def __len__(self) -> int:
        return 0 if self.is_empty else self.end_block - self.start_block + 1

    def block_numbers(self) -> Iterator[int]:
        return iter(range(self.start_block, self.end_block + 1))


@dataclass
class ScanResult:
    """Matches found by one scan plus how complete they are."""
    range: ScanRange
    transactions: List[MatchedTransaction] = field(default_factory=list)
    status: ScanStatus = ScanStatus.COMPLETE
    skipped_blocks: List[int] = field(default_factory=list)
    blocks_scanned: int = 0

    @property
    def is_complete(self) -> bool:
        return self.status == ScanStatus.COMPLETE


@dataclass(frozen=True)
class ResolvedBlock:
    """Outcome of a timestamp-to-block search."""
    number: int
    confidence: Confidence
    timestamp: Optional[int] = None  # timestamp of `number` when it was probed
    probes: int = 0


@dataclass(frozen=True)
class HistoricalBalance:
    """Balance of an address at the block resolved for a calendar date."""
    address: str
    block_number: int
    raw_amount: int  # wei
    confidence: Confidence
    target_timestamp: int

    @property
    def amount(self) -> Decimal:
        return wei_to_ether(self.raw_amount)
