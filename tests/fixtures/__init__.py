"""Shared test fixtures for tx_crawler tests."""
# Mock client fixtures
from .mock_clients import ledger_client, InMemoryLedgerClient, chain_from_timestamps

# Mock config fixtures and constants
from .mock_config import (
    mock_ledger_settings,
    mock_scan_settings,
    retry_policy,
    TEST_RPC_URL,
    TEST_REQUEST_TIMEOUT,
    TEST_DEFAULT_WINDOW,
    TEST_MAX_TRIES,
)

__all__ = [
    # Fixtures
    'ledger_client',
    'mock_ledger_settings',
    'mock_scan_settings',
    'retry_policy',
    # Helpers
    'InMemoryLedgerClient',
    'chain_from_timestamps',
    # Constants
    'TEST_RPC_URL',
    'TEST_REQUEST_TIMEOUT',
    'TEST_DEFAULT_WINDOW',
    'TEST_MAX_TRIES',
]
