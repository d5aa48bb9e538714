"""
Tree Service Module

This module provides the service layer shared by the CLI shell and the
REST API. A TreeService owns the single "current tree" and exposes the
boundary operations, which take and return digests as hex strings.

Every operation takes the service lock once and returns everything it
read from the tree in that same critical section, so a result never
mixes data from two different trees.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import Settings, get_settings
from .errors import EmptyInput, IndexOutOfRange, NoTreeBuilt
from .tree import MerkleTree
from .utils.hex_helpers import digest_to_hex, hex_to_digest, hexes_to_digests

logger = logging.getLogger(__name__)


@dataclass
class TreeSnapshot:
    """Hex copy of every level of a tree, leaves first and root last."""
    levels: List[List[str]]

    @property
    def leaf_count(self) -> int:
        return len(self.levels[0]) if self.levels else 0

    @property
    def depth(self) -> int:
        return max(len(self.levels) - 1, 0)

    @property
    def leaves(self) -> List[str]:
        return list(self.levels[0]) if self.levels else []

    @property
    def root(self) -> str:
        """
        Raises:
            EmptyInput: If the snapshot has no leaves
        """
        if not self.levels:
            raise EmptyInput("Tree has no leaves and therefore no root")
        return self.levels[-1][0]


@dataclass
class ProofResult:
    """Container for a proof together with the leaf and root it belongs to."""
    index: int
    leaf: str
    proof: List[str]
    root: str


def _snapshot(tree: MerkleTree) -> TreeSnapshot:
    return TreeSnapshot([[digest_to_hex(node) for node in level] for level in tree.levels])


class TreeService:
    """Holder of the current tree, with every operation serialized by one lock."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize the tree service.

        Args:
            settings: Runtime settings. If None, they are read from the environment.
        """
        self.settings = settings or get_settings()
        self._tree: Optional[MerkleTree] = None
        self._lock = threading.Lock()

    def _require_tree(self) -> MerkleTree:
        if self._tree is None:
            raise NoTreeBuilt("No tree has been built yet; use build first")
        return self._tree

    def _replace(self, tree: MerkleTree) -> TreeSnapshot:
        if tree.is_empty and not self.settings.allow_empty_build:
            raise EmptyInput("build requires at least one leaf")
        self._tree = tree
        logger.info(f"Built tree with {len(tree)} leaves")
        return _snapshot(tree)

    def has_tree(self) -> bool:
        with self._lock:
            return self._tree is not None

    def build(self, hashes: List[str]) -> TreeSnapshot:
        """
        Build a new tree from hex digests, replacing any current tree.

        Returns:
            Snapshot of the new tree

        Raises:
            InvalidDigest: If any hash is malformed; the current tree is kept
            EmptyInput: If no hashes are given and empty builds are disabled
        """
        leaves = hexes_to_digests(hashes)
        tree = MerkleTree(leaves)
        with self._lock:
            return self._replace(tree)

    def build_raw(self, texts: List[str]) -> TreeSnapshot:
        """Build a new tree by hashing each text payload into a leaf."""
        tree = MerkleTree.from_payloads(texts)
        with self._lock:
            return self._replace(tree)

    def add(self, hash_hex: str) -> TreeSnapshot:
        """
        Append a hex digest to the current tree.

        Returns:
            Snapshot of the tree after the append; the new leaf is the last one

        Raises:
            InvalidDigest: If the hash is malformed
            NoTreeBuilt: If no tree exists
        """
        leaf = hex_to_digest(hash_hex)
        with self._lock:
            tree = self._require_tree()
            tree.append(leaf)
            logger.info(f"Added leaf {len(tree) - 1}")
            return _snapshot(tree)

    def add_raw(self, text: str) -> TreeSnapshot:
        """Hash a text payload and append it to the current tree."""
        with self._lock:
            tree = self._require_tree()
            tree.append_payload(text)
            logger.info(f"Added raw leaf {len(tree) - 1}")
            return _snapshot(tree)

    def proof_with_context(self, index: int) -> ProofResult:
        """
        Generate the proof for a leaf along with that leaf and the root.

        Raises:
            NoTreeBuilt: If no tree exists
            IndexOutOfRange: If index is not a valid leaf position
        """
        with self._lock:
            tree = self._require_tree()
            proof = tree.prove(index)
            leaf, root = tree.leaves[index], tree.root
        logger.debug(f"Generated proof for leaf {index} with {len(proof)} steps")
        return ProofResult(
            index=index,
            leaf=digest_to_hex(leaf),
            proof=[digest_to_hex(step) for step in proof],
            root=digest_to_hex(root),
        )

    def proof(self, index: int) -> List[str]:
        """
        Generate the proof for a leaf of the current tree.

        Raises:
            NoTreeBuilt: If no tree exists
            IndexOutOfRange: If index is not a valid leaf position
        """
        return self.proof_with_context(index).proof

    def verify_with_root(self, proof: List[str], seed: str, index: int) -> Tuple[bool, str]:
        """
        Verify a proof against the root of the current tree.

        Args:
            proof: Sibling digests as hex strings, leaf-to-root
            seed: Digest of the leaf being proven
            index: Claimed index of the leaf

        Returns:
            Tuple of (verified, root the proof was checked against)

        Raises:
            NoTreeBuilt: If no tree exists
            IndexOutOfRange: If index is outside the current leaf range
            InvalidDigest: If any digest is malformed
            EmptyInput: If the current tree has no leaves
        """
        siblings = hexes_to_digests(proof)
        leaf = hex_to_digest(seed)
        with self._lock:
            tree = self._require_tree()
            if index < 0 or index >= len(tree):
                raise IndexOutOfRange(index, len(tree))
            root = tree.root
        verified = MerkleTree.verify(siblings, leaf, index, root)
        logger.debug(f"Verification of leaf {index}: {verified}")
        return verified, digest_to_hex(root)

    def verify(self, proof: List[str], seed: str, index: int) -> bool:
        """Verify a proof against the root of the current tree."""
        return self.verify_with_root(proof, seed, index)[0]

    def snapshot(self) -> TreeSnapshot:
        """
        Raises:
            NoTreeBuilt: If no tree exists
        """
        with self._lock:
            return _snapshot(self._require_tree())

    def root(self) -> str:
        """
        Raises:
            NoTreeBuilt: If no tree exists
            EmptyInput: If the current tree has no leaves
        """
        return self.snapshot().root

    def levels(self) -> List[List[str]]:
        return self.snapshot().levels

    def depth(self) -> int:
        return self.snapshot().depth

    def leaf_count(self) -> int:
        return self.snapshot().leaf_count

    def reset(self) -> None:
        """Discard the current tree."""
        with self._lock:
            self._tree = None
        logger.info("Discarded current tree")
