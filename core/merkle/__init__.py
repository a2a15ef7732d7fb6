"""
Module 02 - Merkle Tree and Commitments
Sorted-pair Merkle tree construction + proof generation/verification.

This module provides:
- MerkleProof: Dataclass representing a Merkle inclusion proof
- build_merkle_root: Compute root from leaf hashes
- build_merkle_proof / build_all_proofs: Generate proofs
- verify_merkle_proof / verify_leaf_in_root: Verify a proof against a root

Canonical Commitment Rules:
1. Leaf hashing: sha256(account[20] || amount[32 BE] || release_time[32 BE])
2. Parent hashing: sha256(min(a, b) || max(a, b))
3. Odd node: promoted unchanged
4. Empty tree: sha256(b"")
5. Single leaf: root = leaf

Usage:
    from core.crypto import hash_leaf
    from core.merkle import build_merkle_root, build_merkle_proof, verify_merkle_proof

    leaves = [hash_leaf(r.account, r.amount, r.release_time) for r in recipients]
    root = build_merkle_root(leaves)
    proof = build_merkle_proof(leaves, index=2)
    assert verify_merkle_proof(proof)
"""
from .merkle_tree import (
    EMPTY_TREE_ROOT,
    MerkleProof,
    merkle_parent,
    build_merkle_levels,
    build_merkle_root,
    build_merkle_proof,
    build_all_proofs,
    compute_root_from_proof,
    verify_merkle_proof,
    verify_leaf_in_root,
    compute_tree_depth,
)


__all__ = [
    "MerkleProof",
    "EMPTY_TREE_ROOT",
    "merkle_parent",
    "build_merkle_levels",
    "build_merkle_root",
    "build_merkle_proof",
    "build_all_proofs",
    "compute_root_from_proof",
    "verify_merkle_proof",
    "verify_leaf_in_root",
    "compute_tree_depth",
]
