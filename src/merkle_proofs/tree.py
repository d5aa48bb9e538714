"""
Merkle Tree Building and Manipulation

This module provides the MerkleTree class together with the level
building functions it uses. A tree is stored eagerly as a list of
levels, leaves first and root last. When a level has an odd number of
nodes, its last node is paired with itself to compute the parent.
"""

import logging
from typing import Iterable, List, Union

from .errors import EmptyInput
from .hashing import hash_leaf, hash_node
from .proof import get_proof, verify_merkle_proof
from .utils.hex_helpers import validate_digest

logger = logging.getLogger(__name__)


def next_level(level: List[bytes]) -> List[bytes]:
    """
    Derive the parent level of `level`.

    Examples:
        >>> next_level([a, b, c])  # [hash_node(a, b), hash_node(c, c)]
    """
    parents = []
    for i in range(0, len(level), 2):
        left = level[i]
        right = level[i + 1] if i + 1 < len(level) else left
        parents.append(hash_node(left, right))
    return parents


def build_levels(leaves: List[bytes]) -> List[List[bytes]]:
    """
    Build every level of a tree from its leaves.

    Args:
        leaves: List of 32-byte leaf digests

    Returns:
        List of levels from leaves to root; empty when there are no leaves
    """
    if not leaves:
        return []

    levels = [list(leaves)]
    while len(levels[-1]) > 1:
        levels.append(next_level(levels[-1]))
    return levels


def validate_tree_structure(levels: List[List[bytes]]) -> bool:
    """
    Validate that a list of levels has the shape of a binary merkle tree.

    Args:
        levels: List of tree levels from leaves to root

    Returns:
        True if tree structure is valid
    """
    if not levels:
        return False

    # Check each level has half the nodes of the previous level
    for i in range(1, len(levels)):
        expected_size = (len(levels[i - 1]) + 1) // 2
        if len(levels[i]) != expected_size:
            return False

    # Root level should have exactly one node
    return len(levels[-1]) == 1


class MerkleTree:
    """
    Binary merkle tree over an ordered sequence of 32-byte leaf digests.

    The tree is mutated only by append, which recomputes every level
    above the leaves. Proof verification is a staticmethod and needs no
    tree instance.
    """

    def __init__(self, leaves: Iterable[bytes] = ()):
        """
        Build a tree from already-hashed leaves.

        Args:
            leaves: 32-byte digests in index order; may be empty

        Raises:
            InvalidDigest: If any leaf is not a 32-byte value
        """
        checked = [validate_digest(leaf) for leaf in leaves]
        self._levels = build_levels(checked)
        logger.debug(f"Built tree with {len(checked)} leaves and {len(self._levels)} levels")

    @classmethod
    def build(cls, leaves: Iterable[bytes]) -> "MerkleTree":
        """Build a tree from leaf digests."""
        return cls(leaves)

    @classmethod
    def from_payloads(cls, payloads: Iterable[Union[bytes, str]]) -> "MerkleTree":
        """Build a tree by hashing each raw payload into a leaf, preserving order."""
        return cls([hash_leaf(payload) for payload in payloads])

    def __len__(self) -> int:
        return len(self._levels[0]) if self._levels else 0

    def __repr__(self) -> str:
        if not self._levels:
            return "MerkleTree(leaves=0)"
        return f"MerkleTree(leaves={len(self)}, root={self.root.hex()})"

    @property
    def leaves(self) -> List[bytes]:
        return list(self._levels[0]) if self._levels else []

    @property
    def levels(self) -> List[List[bytes]]:
        """Copy of all levels, leaves first and root last."""
        return [list(level) for level in self._levels]

    @property
    def depth(self) -> int:
        """Number of levels above the leaves, i.e. the proof length."""
        return max(len(self._levels) - 1, 0)

    @property
    def is_empty(self) -> bool:
        return not self._levels

    @property
    def root(self) -> bytes:
        """
        The root digest.

        Raises:
            EmptyInput: If the tree has no leaves
        """
        if not self._levels:
            raise EmptyInput("Tree has no leaves and therefore no root")
        return self._levels[-1][0]

    def append(self, leaf: bytes) -> None:
        """
        Append a leaf digest and recompute all levels above it.

        Existing leaf indices never change. On an empty tree this behaves
        like building a single-leaf tree.

        Raises:
            InvalidDigest: If leaf is not a 32-byte value; the tree is left unchanged
        """
        leaf = validate_digest(leaf)
        leaves = self.leaves
        leaves.append(leaf)
        self._levels = build_levels(leaves)
        logger.debug(f"Appended leaf {len(leaves) - 1}; tree now has {len(self._levels)} levels")

    def append_payload(self, payload: Union[bytes, str]) -> None:
        """Hash a raw payload and append it as a leaf."""
        self.append(hash_leaf(payload))

    def prove(self, index: int) -> List[bytes]:
        """
        Generate the inclusion proof for the leaf at `index`.

        Returns:
            Sibling digests ordered leaf-to-root; empty for a single-leaf tree

        Raises:
            IndexOutOfRange: If index is negative or >= number of leaves
        """
        return get_proof(self._levels, index)

    @staticmethod
    def verify(proof: List[bytes], leaf: bytes, index: int, root: bytes) -> bool:
        """
        Check that `leaf` sits at `index` in a tree whose root is `root`.

        Raises:
            IndexOutOfRange: If index is negative
        """
        return verify_merkle_proof(proof, leaf, index, root)
