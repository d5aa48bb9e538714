"""
Proof Tests

Tests for proof generation and verification: round trips, tampering,
single-leaf trees and the odd-level pairing rule.
"""

import unittest

from merkle_proofs.errors import IndexOutOfRange
from merkle_proofs.hashing import hash_leaf, hash_node
from merkle_proofs.proof import (
    compute_root_from_proof,
    get_proof,
    get_proof_indices,
    sibling_index,
    validate_proof_length,
    verify_merkle_proof,
)
from merkle_proofs.tree import MerkleTree


def flip_bit(data: bytes, bit: int) -> bytes:
    buf = bytearray(data)
    buf[bit // 8] ^= 1 << (bit % 8)
    return bytes(buf)


class TestRoundTrip(unittest.TestCase):

    def test_every_leaf_verifies(self):
        """verify(prove(i), leaves[i], i, root) holds for every leaf"""
        for n in range(1, 20):
            tree = MerkleTree.from_payloads([f"item-{i}" for i in range(n)])
            for index, leaf in enumerate(tree.leaves):
                with self.subTest(leaves=n, index=index):
                    proof = tree.prove(index)
                    self.assertTrue(MerkleTree.verify(proof, leaf, index, tree.root))
                    self.assertTrue(validate_proof_length(proof, tree.depth))

    def test_proof_length_is_ceil_log2(self):
        for n, expected in [(1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (16, 4), (17, 5)]:
            with self.subTest(leaves=n):
                tree = MerkleTree.from_payloads(map(str, range(n)))
                self.assertEqual(len(tree.prove(n - 1)), expected)


class TestSingleLeaf(unittest.TestCase):

    def test_single_leaf(self):
        """build([L]) has root L, empty proof, and verify([], L, 0, L) holds"""
        leaf = hash_leaf(b"L")
        tree = MerkleTree.build([leaf])
        self.assertEqual(tree.root, leaf)
        self.assertEqual(tree.prove(0), [])
        self.assertTrue(MerkleTree.verify([], leaf, 0, leaf))


class TestDuplicateLast(unittest.TestCase):

    def test_three_leaf_proofs(self):
        """The last leaf of an odd level is its own sibling"""
        a, b, c = (hash_leaf(x) for x in (b"a", b"b", b"c"))
        tree = MerkleTree.build([a, b, c])

        self.assertEqual(tree.prove(2), [c, hash_node(a, b)])
        self.assertEqual(tree.prove(0), [b, hash_node(c, c)])
        self.assertEqual(tree.prove(1), [a, hash_node(c, c)])

        # Replaying the proof for c must land on the stored root
        replayed = hash_node(hash_node(a, b), hash_node(c, c))
        self.assertEqual(replayed, tree.root)
        self.assertEqual(compute_root_from_proof(c, 2, tree.prove(2)), tree.root)

    def test_odd_level_above_leaves(self):
        """Five leaves give levels of 5, 3, 2, 1 nodes; leaf 4 is duplicated twice"""
        tree = MerkleTree.from_payloads(["a", "b", "c", "d", "e"])
        levels = tree.levels
        self.assertEqual([len(level) for level in levels], [5, 3, 2, 1])
        self.assertEqual(tree.prove(4), [levels[0][4], levels[1][2], levels[2][0]])
        self.assertTrue(MerkleTree.verify(tree.prove(4), levels[0][4], 4, tree.root))

    def test_sibling_index(self):
        self.assertEqual(sibling_index(0, 4), 1)
        self.assertEqual(sibling_index(3, 4), 2)
        self.assertEqual(sibling_index(2, 3), 2)
        self.assertEqual(sibling_index(0, 1), 0)

    def test_get_proof_indices(self):
        self.assertEqual(get_proof_indices(2, [3, 2, 1]), [2, 0])
        self.assertEqual(get_proof_indices(4, [5, 3, 2, 1]), [4, 2, 0])
        self.assertEqual(get_proof_indices(0, [1]), [])


class TestTamper(unittest.TestCase):

    def setUp(self):
        self.tree = MerkleTree.from_payloads([f"leaf-{i}" for i in range(7)])
        self.index = 5
        self.leaf = self.tree.leaves[self.index]
        self.proof = self.tree.prove(self.index)

    def test_flipped_proof_bit_fails(self):
        for step in range(len(self.proof)):
            for bit in (0, 7, 100, 255):
                with self.subTest(step=step, bit=bit):
                    tampered = list(self.proof)
                    tampered[step] = flip_bit(tampered[step], bit)
                    self.assertFalse(MerkleTree.verify(tampered, self.leaf, self.index, self.tree.root))

    def test_flipped_seed_bit_fails(self):
        for bit in (0, 31, 128, 255):
            with self.subTest(bit=bit):
                seed = flip_bit(self.leaf, bit)
                self.assertFalse(MerkleTree.verify(self.proof, seed, self.index, self.tree.root))

    def test_wrong_index_fails(self):
        for index in range(7):
            if index == self.index:
                continue
            with self.subTest(index=index):
                self.assertFalse(MerkleTree.verify(self.proof, self.leaf, index, self.tree.root))

    def test_wrong_root_fails(self):
        self.assertFalse(MerkleTree.verify(self.proof, self.leaf, self.index, flip_bit(self.tree.root, 3)))

    def test_truncated_proof_fails(self):
        self.assertFalse(MerkleTree.verify(self.proof[:-1], self.leaf, self.index, self.tree.root))

    def test_negative_index_rejected(self):
        with self.assertRaises(IndexOutOfRange):
            MerkleTree.verify(self.proof, self.leaf, -1, self.tree.root)

    def test_negative_index_message(self):
        with self.assertRaises(IndexOutOfRange) as ctx:
            compute_root_from_proof(self.leaf, -1, self.proof)
        self.assertEqual(str(ctx.exception), "Leaf index -1 must be non-negative")
        self.assertIsNone(ctx.exception.leaf_count)


class TestLevelFunctions(unittest.TestCase):

    def test_get_proof_on_levels(self):
        tree = MerkleTree.from_payloads(["a", "b", "c", "d"])
        self.assertEqual(get_proof(tree.levels, 1), tree.prove(1))

    def test_get_proof_out_of_range(self):
        with self.assertRaises(IndexOutOfRange):
            get_proof([], 0)

    def test_verify_merkle_proof(self):
        tree = MerkleTree.from_payloads(["a", "b"])
        self.assertTrue(verify_merkle_proof(tree.prove(0), tree.leaves[0], 0, tree.root))
        self.assertFalse(verify_merkle_proof(tree.prove(0), tree.leaves[1], 0, tree.root))


if __name__ == "__main__":
    unittest.main(verbosity=2)
