"""
Module 02 - Merkle Tree Implementation
Sorted-pair Merkle tree construction, proof generation, and verification.

This module provides:
- Deterministic Merkle root computation
- Merkle proof generation for any leaf index
- Position-free Merkle proof verification

Canonical Commitment Rules (Hard Contracts):
1. Leaves are 32-byte digests produced by core.crypto.hashing.hash_leaf()
2. Parent hashing: parent = sha256(min(left, right) || max(left, right))
3. Odd node: an unpaired last node is promoted unchanged to the next level
4. Empty leaves: build_merkle_root([]) returns sha256(b"")
5. Single leaf: root = leaf, proof is empty

Determinism Notes:
- Leaf order is preserved as given; only sibling pairs are sorted
- Because pairs are sorted, a proof is just the sibling list, bottom-up;
  verifiers never need to know whether a node was a left or right child
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from core.crypto.hashing import hash_sorted_pair, sha256


# Empty tree sentinel: sha256 of empty bytes
EMPTY_TREE_ROOT: bytes = sha256(b"")


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle proof for a single leaf in a sorted-pair Merkle tree.

    Attributes:
        leaf: The leaf hash being proven
        index: The 0-based index of the leaf in the original leaf list
        siblings: Sibling hashes from bottom to top of tree
        root: The Merkle root this proof is against
    """
    leaf: bytes
    index: int
    siblings: list[bytes]
    root: bytes

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """Compute the parent hash of two child nodes (order-independent)."""
    return hash_sorted_pair(left, right)


def build_merkle_levels(leaves: Sequence[bytes]) -> list[list[bytes]]:
    """
    Build every level of the tree, leaves first and root last.

    Example: [a, b, c] -> [[a, b, c], [parent(a,b), c], [parent(parent(a,b), c)]]
    """
    if len(leaves) == 0:
        return [[EMPTY_TREE_ROOT]]

    levels: list[list[bytes]] = [list(leaves)]
    current_level = levels[0]

    while len(current_level) > 1:
        next_level: list[bytes] = []
        for i in range(0, len(current_level), 2):
            if i + 1 < len(current_level):
                next_level.append(merkle_parent(current_level[i], current_level[i + 1]))
            else:
                # Unpaired node moves up as-is
                next_level.append(current_level[i])
        levels.append(next_level)
        current_level = next_level

    return levels


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Args:
        leaves: Sequence of 32-byte leaf hashes. Order is preserved.

    Returns:
        32-byte Merkle root
    """
    return build_merkle_levels(leaves)[-1][0]


def build_merkle_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    Args:
        leaves: Sequence of leaf hashes
        index: 0-based index of the leaf to prove

    Returns:
        MerkleProof with leaf, index, siblings (bottom-up), and root

    Raises:
        IndexError: If index is out of range
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot generate proof for empty leaf list")

    if index < 0 or index >= len(leaves):
        raise IndexError(
            f"Leaf index {index} out of range for {len(leaves)} leaves"
        )

    levels = build_merkle_levels(leaves)
    return _proof_from_levels(levels, index)


def build_all_proofs(leaves: Sequence[bytes]) -> list[MerkleProof]:
    """Generate one proof per leaf while building the tree only once."""
    if len(leaves) == 0:
        raise ValueError("Cannot generate proofs for empty leaf list")
    levels = build_merkle_levels(leaves)
    return [_proof_from_levels(levels, i) for i in range(len(leaves))]


def _proof_from_levels(levels: list[list[bytes]], index: int) -> MerkleProof:
    siblings: list[bytes] = []
    current_index = index

    for level in levels[:-1]:
        sibling_index = current_index ^ 1
        if sibling_index < len(level):
            siblings.append(level[sibling_index])
        current_index //= 2

    return MerkleProof(
        leaf=levels[0][index],
        index=index,
        siblings=siblings,
        root=levels[-1][0],
    )


def compute_root_from_proof(leaf: bytes, siblings: Sequence[bytes]) -> bytes:
    """Fold the siblings into the leaf to recompute the root."""
    current_hash = leaf
    for sibling in siblings:
        current_hash = merkle_parent(current_hash, sibling)
    return current_hash


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """
    Verify a Merkle proof against its claimed root.

    Returns:
        True if proof is valid, False otherwise
    """
    return compute_root_from_proof(proof.leaf, proof.siblings) == proof.root


def verify_leaf_in_root(leaf: bytes, siblings: Sequence[bytes], root: bytes) -> bool:
    """Verify a leaf is included under root using raw components."""
    return compute_root_from_proof(leaf, siblings) == root


def compute_tree_depth(num_leaves: int) -> int:
    """
    Compute the number of hashing levels above the leaves.

    Equals ceil(log2(num_leaves)); 0 for an empty or single-leaf tree.
    """
    if num_leaves <= 1:
        return 0
    return (num_leaves - 1).bit_length()


__all__ = [
    "EMPTY_TREE_ROOT",
    "MerkleProof",
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
