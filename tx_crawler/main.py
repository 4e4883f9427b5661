#!/usr/bin/env python3
"""
Ethereum Transaction Crawler

Looks up wallet activity against a JSON-RPC ledger:
- Every transaction sent from or to an address within a block range
- The balance of an address at a calendar date
"""

import argparse
import signal
import sys
import threading

from tx_crawler.clients.jsonrpc import JsonRpcLedgerClient
from tx_crawler.exceptions import InvalidInputError, ProviderError
from tx_crawler.models import MatchedTransaction, ScanResult, format_ether
from tx_crawler.service import WalletActivityService


def _print_transactions(result: ScanResult):
    headers = MatchedTransaction.row_headers()
    print("\n" + " | ".join(headers))
    for tx in result.transactions:
        print(" | ".join(str(cell) for cell in tx.to_row()))

    print(f"\n{len(result.transactions)} transactions in blocks "
          f"{result.range.start_block}..{result.range.end_block}, status: {result.status.value}")
    if result.skipped_blocks:
        print(f"⚠️  Skipped blocks after repeated provider faults: {result.skipped_blocks}")
    if not result.is_complete:
        print("⚠️  Result is incomplete; rerun the missing blocks to fill the gap")


def run():
    parser = argparse.ArgumentParser(
        description='Ethereum Transaction Crawler',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Transactions in the last 10,000 blocks
  python -m tx_crawler.main --mode transactions --address 0xaa7a9ca87d3694b5755f213b5d04094b8d0f0a6f

  # Transactions from a given block up to the chain head
  python -m tx_crawler.main --mode transactions --address 0xaa7a... --start-block 9000000

  # Balance at 00:00 UTC on a date
  python -m tx_crawler.main --mode balance --address 0xaa7a... --date 2024-01-01
        """
    )

    parser.add_argument(
        '--mode',
        choices=['transactions', 'balance'],
        default='transactions',
        help='''Mode of operation:
            transactions - Scan a block range for the address (default)
            balance - Balance of the address at --date
        '''
    )
    parser.add_argument('--address', required=True, help='Wallet address (0x...)')
    parser.add_argument('--start-block', type=int, default=None,
                        help='First block to scan (default: chain head minus SCAN_DEFAULT_WINDOW)')
    parser.add_argument('--end-block', type=int, default=None,
                        help='Last block to scan (default: chain head)')
    parser.add_argument('--timeout', type=float, default=None,
                        help='Stop the scan after this many seconds and report what was found')
    parser.add_argument('--date', type=str, default=None, help='Date for --mode balance, YYYY-MM-DD')
    parser.add_argument('--rpc-url', type=str, default=None, help='Overrides LEDGER_RPC_URL')

    args = parser.parse_args()

    try:
        print("Initializing JSON-RPC ledger client...")
        ledger_client = JsonRpcLedgerClient(rpc_url=args.rpc_url)
    except ValueError as e:
        print(f"Configuration error: {e}")
        sys.exit(2)
    service = WalletActivityService(ledger_client)

    try:
        if args.mode == 'transactions':
            cancel_event = threading.Event()
            # Ctrl-C stops the scan after the block in flight and keeps the partial result
            previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
            try:
                result = service.scan_transactions(
                    args.address,
                    start_block=args.start_block,
                    end_block=args.end_block,
                    cancel_event=cancel_event,
                    timeout=args.timeout,
                )
            finally:
                signal.signal(signal.SIGINT, previous_handler)
            _print_transactions(result)

        elif args.mode == 'balance':
            if not args.date:
                parser.error("--date is required for --mode balance")
            balance = service.get_balance_at_date(args.address, args.date)
            print(f"\nBalance at {args.date}: {format_ether(balance.amount)} ETH "
                  f"(block {balance.block_number}, {balance.confidence.value})")
    except InvalidInputError as e:
        print(f"Invalid input: {e}")
        sys.exit(2)
    except ProviderError as e:
        print(f"Provider error: {e}")
        sys.exit(1)

    print("\n✓ Done!")


if __name__ == "__main__":
    run()
