"""
Merkle Proofs

Binary merkle trees over SHA-256 digests with incremental appends and
single-leaf inclusion proofs.

Usage:
    from merkle_proofs import MerkleTree, hash_leaf

    tree = MerkleTree.from_payloads(["a", "b", "c"])
    proof = tree.prove(2)
    assert MerkleTree.verify(proof, hash_leaf("c"), 2, tree.root)
"""

from .errors import (
    MerkleTreeError,
    InvalidDigest,
    EmptyInput,
    NoTreeBuilt,
    IndexOutOfRange,
)
from .hashing import hash_leaf, hash_node
from .proof import (
    compute_root_from_proof,
    get_proof,
    get_proof_indices,
    validate_proof_length,
    verify_merkle_proof,
)
from .service import TreeService
from .tree import MerkleTree, build_levels, next_level, validate_tree_structure

__version__ = "0.1.0"

__all__ = [
    # Errors
    "MerkleTreeError",
    "InvalidDigest",
    "EmptyInput",
    "NoTreeBuilt",
    "IndexOutOfRange",
    # Hashing
    "hash_leaf",
    "hash_node",
    # Tree
    "MerkleTree",
    "build_levels",
    "next_level",
    "validate_tree_structure",
    # Proofs
    "compute_root_from_proof",
    "get_proof",
    "get_proof_indices",
    "validate_proof_length",
    "verify_merkle_proof",
    # Service
    "TreeService",
]
