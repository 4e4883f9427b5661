from tx_crawler.crawlers.range_scanner import RangeScanner
from tx_crawler.crawlers.block_resolver import BlockTimeResolver

__all__ = ['RangeScanner', 'BlockTimeResolver']
