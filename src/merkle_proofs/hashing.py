"""
Hashing Primitives

Leaf and node hashing for the merkle tree. Both use plain SHA-256 with
no domain-separation prefix:
- LeafHash(payload) = SHA256(payload)
- NodeHash(left, right) = SHA256(left || right)
"""

from hashlib import sha256
from typing import Union


def hash_leaf(payload: Union[bytes, str]) -> bytes:
    """
    Hash a raw payload into a 32-byte leaf digest.

    Args:
        payload: Raw bytes, or text which is UTF-8 encoded first

    Returns:
        32-byte leaf hash
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return sha256(payload).digest()


def hash_node(left: bytes, right: bytes) -> bytes:
    """
    Hash two child digests into their parent digest.

    Order matters: hash_node(a, b) != hash_node(b, a) for a != b.

    Args:
        left: Left child digest
        right: Right child digest

    Returns:
        32-byte parent hash
    """
    return sha256(left + right).digest()
