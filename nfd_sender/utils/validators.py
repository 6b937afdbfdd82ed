"""
Input validation utilities for the batch sender.

Provides reusable validators for Algorand addresses and base64 payloads.
"""
import base64
import binascii

from algosdk import encoding


def validate_algorand_address(address: str) -> str:
    """
    Validate an Algorand address format and checksum.

    Args:
        address: Algorand wallet address string

    Returns:
        The validated address (unchanged)

    Raises:
        ValueError if the address is invalid
    """
    if not address:
        raise ValueError("Wallet address is required")

    if len(address) != 58:
        raise ValueError(
            f"Invalid Algorand address: expected 58 characters, got {len(address)}"
        )

    if not encoding.is_valid_address(address):
        raise ValueError(f"Invalid Algorand address checksum: {address[:12]}...")

    return address


def fix_base64_padding(b64_str: str) -> str:
    """Ensure proper base64 padding (must be multiple of 4)."""
    padding_needed = len(b64_str) % 4
    if padding_needed:
        b64_str += '=' * (4 - padding_needed)
    return b64_str


def validate_base64(b64_str: str) -> bytes:
    """Validate and decode a base64 string. Returns raw bytes."""
    padded = fix_base64_padding(b64_str)
    try:
        return base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 encoding: {e}")
