from tx_crawler.clients.ledger import LedgerClientInterface
from tx_crawler.clients.jsonrpc import JsonRpcLedgerClient

__all__ = ['LedgerClientInterface', 'JsonRpcLedgerClient']
