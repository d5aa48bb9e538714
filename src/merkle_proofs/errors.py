"""
Merkle Tree Errors

This module defines the exceptions raised by the tree core and the
tree service. All of them derive from MerkleTreeError so callers can
catch the whole family at once.
"""

from typing import Optional


class MerkleTreeError(Exception):
    """Base exception for merkle tree operations."""
    pass


class InvalidDigest(MerkleTreeError, ValueError):
    """Raised when a digest is not exactly 32 bytes / 64 hex characters."""
    pass


class EmptyInput(MerkleTreeError):
    """Raised when an operation needs at least one leaf and there is none."""
    pass


class NoTreeBuilt(MerkleTreeError):
    """Raised when a tree is mutated or queried before any build."""
    pass


class IndexOutOfRange(MerkleTreeError, IndexError):
    """Raised when a leaf index is negative or past the last leaf."""

    def __init__(self, index: int, leaf_count: Optional[int] = None):
        self.index = index
        self.leaf_count = leaf_count
        if leaf_count is None:
            super().__init__(f"Leaf index {index} must be non-negative")
        elif leaf_count:
            super().__init__(f"Leaf index {index} out of range (0-{leaf_count - 1})")
        else:
            super().__init__(f"Leaf index {index} out of range (tree has no leaves)")
