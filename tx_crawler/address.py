"""
Address checks for the surrounding application.
The crawlers themselves compare addresses case-insensitively and never re-validate.
"""

import re

from tx_crawler.exceptions import InvalidInputError

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def validate_address(address: str) -> str:
    """
    Validate an account address and return it stripped of surrounding whitespace.

    Args:
        address: 0x-prefixed, 20-byte hex address in any letter case

    Raises:
        InvalidInputError: If the address is empty or malformed
    """
    if not address or not isinstance(address, str):
        raise InvalidInputError("Address must be a non-empty string")
    address = address.strip()
    if not ADDRESS_PATTERN.match(address):
        raise InvalidInputError(f"Invalid address: {address!r}")
    return address


def short_address(address: str) -> str:
    """0x1234...abcd form for log lines."""
    return f"{address[:6]}...{address[-4:]}"
