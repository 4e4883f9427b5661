from tests.fixtures import (  # noqa: F401
    ledger_client,
    mock_ledger_settings,
    mock_scan_settings,
    retry_policy,
)
