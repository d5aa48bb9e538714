"""
Tree Service Tests

Tests for the boundary operations that take and return hex digests and
own the current tree.
"""

import os
import threading
import unittest
from unittest import mock

from merkle_proofs.config import Settings, get_settings
from merkle_proofs.errors import EmptyInput, IndexOutOfRange, InvalidDigest, NoTreeBuilt
from merkle_proofs.hashing import hash_leaf, hash_node
from merkle_proofs.service import TreeService
from merkle_proofs.tree import MerkleTree

A, B, C, D = (hash_leaf(x).hex() for x in ("a", "b", "c", "d"))


class TestTreeService(unittest.TestCase):

    def setUp(self):
        self.service = TreeService(Settings())

    def test_operations_before_build_fail(self):
        """add, proof, verify and root all need a built tree"""
        self.assertFalse(self.service.has_tree())
        calls = [
            lambda: self.service.add(A),
            lambda: self.service.add_raw("a"),
            lambda: self.service.proof(0),
            lambda: self.service.verify([], A, 0),
            lambda: self.service.root(),
            lambda: self.service.levels(),
        ]
        for i, call in enumerate(calls):
            with self.subTest(call=i):
                with self.assertRaises(NoTreeBuilt):
                    call()

    def test_build_and_root(self):
        self.service.build([A, B])
        self.assertTrue(self.service.has_tree())
        self.assertEqual(self.service.root(), hash_node(bytes.fromhex(A), bytes.fromhex(B)).hex())
        self.assertEqual(self.service.leaf_count(), 2)
        self.assertEqual(self.service.depth(), 1)

    def test_build_raw_matches_build(self):
        self.service.build_raw(["a", "b", "c"])
        raw_root = self.service.root()
        self.service.build([A, B, C])
        self.assertEqual(self.service.root(), raw_root)

    def test_build_accepts_prefix_and_uppercase(self):
        self.service.build(["0x" + A.upper(), B])
        self.assertEqual(self.service.levels()[0], [A, B])

    def test_build_replaces_tree(self):
        self.service.build([A, B, C])
        self.service.build([D])
        self.assertEqual(self.service.root(), D)

    def test_invalid_build_keeps_previous_tree(self):
        """A failed build does not touch the current tree"""
        self.service.build([A, B])
        root = self.service.root()
        for bad in (A[:-1], A + "0", "zz" * 32):
            with self.subTest(bad=bad):
                with self.assertRaises(InvalidDigest):
                    self.service.build([C, bad])
                self.assertEqual(self.service.root(), root)

    def test_empty_build_policy(self):
        """Empty builds give an empty tree unless the policy forbids them"""
        self.service.build([])
        self.assertTrue(self.service.has_tree())
        self.assertEqual(self.service.leaf_count(), 0)
        with self.assertRaises(EmptyInput):
            self.service.root()
        with self.assertRaises(IndexOutOfRange):
            self.service.proof(0)
        self.assertEqual(self.service.add(A).leaf_count, 1)
        self.assertEqual(self.service.root(), A)

        strict = TreeService(Settings(allow_empty_build=False))
        with self.assertRaises(EmptyInput):
            strict.build([])
        self.assertFalse(strict.has_tree())

    def test_add(self):
        self.service.build([A, B, C])
        self.assertEqual(self.service.add(D).leaf_count, 4)
        snapshot = self.service.add_raw("e")
        self.assertEqual(snapshot.leaf_count, 5)
        self.assertEqual(snapshot.leaves[-1], hash_leaf("e").hex())
        self.assertEqual(self.service.levels()[0], [A, B, C, D, hash_leaf("e").hex()])

    def test_invalid_add_does_not_mutate(self):
        self.service.build([A, B, C])
        with self.assertRaises(InvalidDigest):
            self.service.add(D[:63])
        self.assertEqual(self.service.leaf_count(), 3)

    def test_proof_and_verify_round_trip(self):
        self.service.build([A, B, C, D])
        for index, leaf in enumerate([A, B, C, D]):
            with self.subTest(index=index):
                proof = self.service.proof(index)
                self.assertEqual(len(proof), 2)
                self.assertTrue(self.service.verify(proof, leaf, index))

    def test_proof_out_of_range(self):
        self.service.build([A, B, C])
        for index in (-1, 3):
            with self.subTest(index=index):
                with self.assertRaises(IndexOutOfRange):
                    self.service.proof(index)

    def test_verify_index_out_of_range(self):
        self.service.build([A, B, C])
        proof = self.service.proof(0)
        for index in (-1, 3):
            with self.subTest(index=index):
                with self.assertRaises(IndexOutOfRange):
                    self.service.verify(proof, A, index)

    def test_verify_rejects_wrong_seed(self):
        self.service.build([A, B, C])
        self.assertFalse(self.service.verify(self.service.proof(0), B, 0))

    def test_verify_invalid_digest(self):
        self.service.build([A, B])
        with self.assertRaises(InvalidDigest):
            self.service.verify(["12"], A, 0)

    def test_proof_with_context(self):
        self.service.build([A, B, C])
        result = self.service.proof_with_context(2)
        self.assertEqual(result.index, 2)
        self.assertEqual(result.leaf, C)
        self.assertEqual(result.proof, self.service.proof(2))
        self.assertEqual(result.root, self.service.root())

    def test_verify_with_root(self):
        self.service.build([A, B, C])
        verified, root = self.service.verify_with_root(self.service.proof(1), B, 1)
        self.assertTrue(verified)
        self.assertEqual(root, self.service.root())
        verified, _ = self.service.verify_with_root(self.service.proof(1), A, 1)
        self.assertFalse(verified)

    def test_snapshot(self):
        snapshot = self.service.build([A, B, C])
        self.assertEqual(snapshot.leaves, [A, B, C])
        self.assertEqual(snapshot.depth, 2)
        self.assertEqual(snapshot.root, self.service.root())
        self.assertEqual(self.service.snapshot(), snapshot)

    def test_proof_consistent_while_rebuilding(self):
        """Leaf, proof and root of one result always come from the same tree"""
        small, large = [A, B, C], [A, B, C, D, A, B, C]
        self.service.build(large)
        done = threading.Event()

        def rebuild():
            while not done.is_set():
                self.service.build(small)
                self.service.build(large)

        writer = threading.Thread(target=rebuild)
        writer.start()
        try:
            for _ in range(200):
                result = self.service.proof_with_context(2)
                self.assertTrue(MerkleTree.verify(
                    [bytes.fromhex(step) for step in result.proof],
                    bytes.fromhex(result.leaf),
                    result.index,
                    bytes.fromhex(result.root),
                ))
        finally:
            done.set()
            writer.join()

    def test_reset(self):
        self.service.build([A])
        self.service.reset()
        self.assertFalse(self.service.has_tree())

    def test_concurrent_adds_are_serialized(self):
        self.service.build([])
        leaves = [hash_leaf(str(i)).hex() for i in range(64)]
        threads = [threading.Thread(target=self.service.add, args=(leaf,)) for leaf in leaves]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(self.service.leaf_count(), 64)
        self.assertEqual(sorted(self.service.levels()[0]), sorted(leaves))


class TestSettings(unittest.TestCase):

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = get_settings()
        self.assertTrue(settings.allow_empty_build)
        self.assertEqual(settings.api_host, "127.0.0.1")
        self.assertEqual(settings.api_port, 8000)
        self.assertEqual(settings.log_level, "WARNING")

    def test_environment_overrides(self):
        env = {
            "MERKLE_ALLOW_EMPTY_BUILD": "false",
            "MERKLE_API_HOST": "0.0.0.0",
            "MERKLE_API_PORT": "9000",
            "MERKLE_LOG_LEVEL": "debug",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = get_settings()
        self.assertFalse(settings.allow_empty_build)
        self.assertEqual(settings.api_host, "0.0.0.0")
        self.assertEqual(settings.api_port, 9000)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_bad_port(self):
        with mock.patch.dict(os.environ, {"MERKLE_API_PORT": "http"}, clear=True):
            with self.assertRaises(ValueError):
                get_settings()


if __name__ == "__main__":
    unittest.main(verbosity=2)
