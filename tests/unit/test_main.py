import os
import signal
import sys
from unittest.mock import patch

import pytest

from tx_crawler import main
from tx_crawler.models import Block, WEI_PER_ETHER

from tests.fixtures.mock_clients import InMemoryLedgerClient
from tests.fixtures.mock_data import TEST_ADDRESS, sample_blocks


@pytest.fixture
def run_cli(mock_scan_settings):
    """Run the CLI with the JSON-RPC client swapped for an in-memory ledger."""
    def _run(client, *argv):
        with patch.object(sys, 'argv', ['tx-crawler', *argv]), \
                patch('tx_crawler.main.JsonRpcLedgerClient', return_value=client), \
                patch('tx_crawler.main.signal.signal', return_value="previous handler") as mock_signal, \
                patch.dict('os.environ', {'RETRY_BACKOFF_FACTOR': '0', 'RETRY_MAX_TRIES': '2'}, clear=False):
            try:
                main.run()
            finally:
                _run.signal_calls = mock_signal.call_args_list
    return _run


def test_transactions_mode_prints_matches(run_cli, capsys):
    run_cli(InMemoryLedgerClient(sample_blocks()),
            '--mode', 'transactions', '--address', TEST_ADDRESS, '--start-block', '100', '--end-block', '102')

    out = capsys.readouterr().out
    assert "0x100a" in out
    assert "0x102b" in out
    assert "status: Complete" in out
    assert "✓ Done!" in out


def test_transactions_mode_reports_skipped_blocks(run_cli, capsys):
    client = InMemoryLedgerClient(sample_blocks())
    client.fail_block(101)

    run_cli(client, '--address', TEST_ADDRESS, '--start-block', '100', '--end-block', '102')

    out = capsys.readouterr().out
    assert "status: PartialDueToFaults" in out
    assert "[101]" in out


def test_balance_mode(run_cli, capsys):
    client = InMemoryLedgerClient(
        [Block(n, 1_704_067_200 + n * 86_400) for n in range(1, 11)],
        balances={TEST_ADDRESS: [(1, WEI_PER_ETHER * 3 // 2)]},
    )

    run_cli(client, '--mode', 'balance', '--address', TEST_ADDRESS, '--date', '2030-01-01')

    assert "Balance at 2030-01-01: 1.5 ETH (block 10, Exact)" in capsys.readouterr().out


def test_balance_mode_requires_date(run_cli):
    with pytest.raises(SystemExit) as info:
        run_cli(InMemoryLedgerClient(sample_blocks()), '--mode', 'balance', '--address', TEST_ADDRESS)

    assert info.value.code == 2


def test_invalid_address_exits_with_code_2(run_cli, capsys):
    client = InMemoryLedgerClient(sample_blocks())

    with pytest.raises(SystemExit) as info:
        run_cli(client, '--address', '0xnope')

    assert info.value.code == 2
    assert "Invalid input" in capsys.readouterr().out
    assert client.calls == []


def test_sigint_handler_is_restored_after_scan(run_cli):
    run_cli(InMemoryLedgerClient(sample_blocks()),
            '--address', TEST_ADDRESS, '--start-block', '100', '--end-block', '101')

    installed, restored = run_cli.signal_calls
    assert installed.args[0] == signal.SIGINT
    assert restored.args == (signal.SIGINT, "previous handler")


def test_missing_rpc_url_exits_with_code_2(mock_scan_settings, capsys):
    with patch.object(sys, 'argv', ['tx-crawler', '--address', TEST_ADDRESS]), \
            patch.dict('os.environ', {}, clear=False):
        os.environ.pop('LEDGER_RPC_URL', None)
        with pytest.raises(SystemExit) as info:
            main.run()

    assert info.value.code == 2
    assert "LEDGER_RPC_URL" in capsys.readouterr().out
