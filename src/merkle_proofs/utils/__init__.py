"""
Utility Functions

This package provides hex string handling for digests crossing the
text boundary.
"""

from .hex_helpers import (
    normalize_hex,
    hex_to_digest,
    hexes_to_digests,
    digest_to_hex,
    validate_digest,
)

__all__ = [
    'normalize_hex',
    'hex_to_digest',
    'hexes_to_digests',
    'digest_to_hex',
    'validate_digest',
]
