"""
Merkle Proof Generation and Verification

This module provides functions for generating and verifying single-leaf
inclusion proofs over a tree stored as a list of levels (levels[0] is the
leaves, levels[-1] holds the root).

Proofs carry no direction flags: the left/right placement of each sibling
is derived from the leaf index, one bit per level. An odd-length level
pairs its last node with itself, so that node's sibling is its own value.
"""

from typing import List, Sequence

from .errors import IndexOutOfRange
from .hashing import hash_node


def sibling_index(index: int, level_size: int) -> int:
    """
    Index of the node paired with `index` on a level of `level_size` nodes.

    Examples:
        >>> sibling_index(0, 4)
        1
        >>> sibling_index(3, 4)
        2
        >>> sibling_index(2, 3)  # last node of an odd level pairs with itself
        2
    """
    if index % 2 == 1:
        return index - 1
    if index + 1 < level_size:
        return index + 1
    return index


def get_proof_indices(index: int, level_sizes: Sequence[int]) -> List[int]:
    """
    Calculate the sibling index at each level of a proof path.

    Args:
        index: Index of the target leaf
        level_sizes: Number of nodes on each level, leaves first, root last

    Returns:
        List of sibling indices, one per level below the root

    Examples:
        >>> get_proof_indices(2, [3, 2, 1])
        [2, 0]
    """
    indices = []
    current_index = index

    for size in level_sizes[:-1]:
        indices.append(sibling_index(current_index, size))
        current_index //= 2

    return indices


def get_proof(levels: List[List[bytes]], index: int) -> List[bytes]:
    """
    Extract a merkle proof from a tree for a given leaf index.

    This function traverses up the tree from a leaf to the root,
    collecting sibling nodes to form the proof path. The root itself
    is never part of the proof.

    Args:
        levels: Complete tree as list of levels, where levels[0] is leaves
        index: Index of the leaf to generate proof for

    Returns:
        List of sibling hashes ordered leaf-to-root

    Raises:
        IndexOutOfRange: If index is not a valid leaf position
    """
    leaf_count = len(levels[0]) if levels else 0
    if index < 0 or index >= leaf_count:
        raise IndexOutOfRange(index, leaf_count)

    sizes = [len(level) for level in levels]
    return [
        levels[level][sibling]
        for level, sibling in enumerate(get_proof_indices(index, sizes))
    ]


def compute_root_from_proof(leaf: bytes, index: int, proof: List[bytes]) -> bytes:
    """
    Rebuild the merkle root from a leaf digest and its proof.

    Args:
        leaf: 32-byte digest of the target leaf
        index: 0-based position of that leaf
        proof: Sibling hashes, one per level, as returned by get_proof

    Returns:
        The reconstructed 32-byte root

    Raises:
        IndexOutOfRange: If index is negative
    """
    if index < 0:
        raise IndexOutOfRange(index)

    current = leaf
    for sibling in proof:
        if index % 2 == 0:
            current = hash_node(current, sibling)  # Leaf is left
        else:
            current = hash_node(sibling, current)  # Leaf is right
        index //= 2  # Move up the tree
    return current


def verify_merkle_proof(
    proof: List[bytes], leaf: bytes, index: int, root: bytes
) -> bool:
    """
    Verify a merkle proof against a known root.

    Args:
        proof: List of sibling hashes
        leaf: The leaf digest being proven
        index: Index of the leaf in the tree
        root: Expected merkle root

    Returns:
        True if the proof is valid
    """
    return compute_root_from_proof(leaf, index, proof) == root


def validate_proof_length(proof: List[bytes], tree_depth: int) -> bool:
    """
    Validate that a proof has the correct length for a given tree depth.

    Args:
        proof: The merkle proof
        tree_depth: Number of levels above the leaves

    Returns:
        True if proof length matches expected depth
    """
    return len(proof) == tree_depth
