"""Wallet activity and historical balance crawler for block-indexed ledgers."""
