from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class LedgerSettings(BaseSettings):
    """JSON-RPC ledger provider configuration."""

    rpc_url: Optional[str] = Field(None, alias="LEDGER_RPC_URL", description="JSON-RPC endpoint (Infura, Alchemy, local node)")
    request_timeout_seconds: float = Field(
        30.0,
        alias="LEDGER_REQUEST_TIMEOUT",
        description="Timeout applied to every individual provider call"
    )
    # Minimum spacing between two calls made through the same client
    min_request_interval_seconds: float = Field(
        0.0,
        alias="LEDGER_MIN_REQUEST_INTERVAL",
        description="Pacing between provider calls to stay under the credential's quota"
    )


class ScanSettings(BaseSettings):
    """Block range scanning configuration."""

    default_window_blocks: int = Field(
        10000,
        alias="SCAN_DEFAULT_WINDOW",
        description="Blocks scanned back from the chain head when no start block is given"
    )
    genesis_block: int = Field(0, alias="SCAN_GENESIS_BLOCK", description="Lowest block number the ledger serves")
    max_concurrency: int = Field(
        1,
        alias="SCAN_MAX_CONCURRENCY",
        ge=1,
        description="Block fetches in flight at once during a scan (1 = sequential)"
    )
    scan_timeout_seconds: Optional[float] = Field(
        None,
        alias="SCAN_TIMEOUT",
        description="Wall-clock limit for a whole scan; expiry behaves like cancellation"
    )
    verbose: bool = Field(True, alias="CRAWLER_VERBOSE", description="Print progress log lines")


class RetrySettings(BaseSettings):
    """Backoff policy for transient provider faults."""

    max_tries: int = Field(4, alias="RETRY_MAX_TRIES", ge=1, le=10, description="Attempts per individual fetch")
    backoff_factor: float = Field(1.0, alias="RETRY_BACKOFF_FACTOR", ge=0, description="Base delay in seconds")
    max_backoff_seconds: float = Field(30.0, alias="RETRY_MAX_BACKOFF", ge=0, description="Cap on a single delay")
