"""
Hex String Utilities

This module converts between the textual digest form used at the
boundary (64 hex characters) and the raw 32-byte digests used inside
the tree.
"""

from typing import Iterable, List

from ..config import DIGEST_SIZE, DIGEST_HEX_LENGTH
from ..errors import InvalidDigest

HEX_CHARS = frozenset("0123456789abcdefABCDEF")


def normalize_hex(hex_str: str) -> str:
    """
    Normalize a digest hex string to lowercase without a '0x' prefix.

    Args:
        hex_str: The hex string to normalize, with or without '0x'

    Returns:
        Lowercase 64-character hex string

    Raises:
        InvalidDigest: If the string has the wrong length or non-hex characters

    Examples:
        >>> normalize_hex("0x" + "AB" * 32)
        "abab...ab"
    """
    if not isinstance(hex_str, str):
        raise InvalidDigest(f"Digest must be a hex string, got {type(hex_str).__name__}")

    hex_part = hex_str.strip()
    if hex_part[:2] in ("0x", "0X"):
        hex_part = hex_part[2:]

    if not all(c in HEX_CHARS for c in hex_part):
        raise InvalidDigest(f"Invalid hex string: {hex_str}")

    if len(hex_part) != DIGEST_HEX_LENGTH:
        raise InvalidDigest(
            f"Expected {DIGEST_HEX_LENGTH} hex characters, got {len(hex_part)}"
        )

    return hex_part.lower()


def hex_to_digest(hex_str: str) -> bytes:
    """
    Convert a digest hex string to its 32 raw bytes.

    Args:
        hex_str: Hex string (with or without '0x' prefix)

    Returns:
        32-byte digest

    Raises:
        InvalidDigest: If the string is not a valid digest
    """
    return bytes.fromhex(normalize_hex(hex_str))


def hexes_to_digests(hex_strs: Iterable[str]) -> List[bytes]:
    """Convert every hex string, failing on the first malformed one."""
    return [hex_to_digest(h) for h in hex_strs]


def digest_to_hex(data: bytes, prefix: bool = False) -> str:
    """
    Convert a digest to a lowercase hex string.

    Args:
        data: Bytes to convert
        prefix: Whether to include '0x' prefix

    Returns:
        Hex string representation
    """
    hex_str = data.hex()
    return f"0x{hex_str}" if prefix else hex_str


def validate_digest(data: bytes) -> bytes:
    """
    Check that a raw digest is bytes of exactly DIGEST_SIZE length.

    Returns:
        The digest as immutable bytes

    Raises:
        InvalidDigest: If the value is not a 32-byte sequence
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise InvalidDigest(f"Digest must be bytes, got {type(data).__name__}")
    data = bytes(data)
    if len(data) != DIGEST_SIZE:
        raise InvalidDigest(f"Expected {DIGEST_SIZE} bytes, got {len(data)} bytes")
    return data

