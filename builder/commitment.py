"""
Commitment Builder

Turns a recipient list into a canonical merkle root, one proof per
recipient and a persisted artifact keyed by that root.

Pipeline:
1. Validate the recipient list (non-empty, well-formed entries)
2. Deduct the fee from every requested amount (integer truncation)
3. Hash each (account, net_amount, release_time) leaf with fixed-width encoding
4. Build the sorted-pair merkle tree and collect proofs
5. Persist the artifact (create-if-absent)

The builder is stateless per call: the same list and fee rate always
produce the same root and proofs.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence, Union

from pydantic import ValidationError as PydanticValidationError

from core.crypto.hashing import from_hex, hash_leaf, to_hex
from core.fees import compute_net_amount, validate_fee_rate
from core.merkle import build_all_proofs, compute_tree_depth, verify_leaf_in_root
from core.schemas.errors import ValidationException
from core.schemas.release import CommitmentArtifact, LeafProof, Recipient
from store.artifacts import ArtifactStore


logger = logging.getLogger(__name__)

RecipientInput = Union[Recipient, Mapping[str, Any]]


def parse_recipients(entries: Sequence[RecipientInput] | None) -> list[Recipient]:
    """
    Validate raw recipient entries.

    Raises:
        ValidationException: If the list is empty or any entry is malformed
    """
    if not entries:
        raise ValidationException(
            "Recipients must be a non-empty array",
            field_path="recipients",
        )

    parsed: list[Recipient] = []
    for i, entry in enumerate(entries):
        if isinstance(entry, Recipient):
            parsed.append(entry)
            continue
        try:
            parsed.append(Recipient.model_validate(entry))
        except PydanticValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationException(
                f"Invalid recipient at index {i}: {loc} {first.get('msg', '')}".strip(),
                field_path=f"recipients[{i}]",
                details={"error_count": e.error_count()},
            ) from e
    return parsed


def build_commitment(
    recipients: Sequence[RecipientInput],
    fee_rate: int,
) -> CommitmentArtifact:
    """
    Build the commitment artifact for a recipient list.

    Args:
        recipients: Requested releases; amounts are gross (pre-fee)
        fee_rate: Current ledger fee rate in basis points

    Returns:
        CommitmentArtifact with root, per-recipient proofs and totals

    Raises:
        ValidationException: If the list or the fee rate is invalid
    """
    validate_fee_rate(fee_rate, allow_zero=True)
    parsed = parse_recipients(recipients)

    net_amounts = [compute_net_amount(r.amount, fee_rate) for r in parsed]
    leaves = [
        hash_leaf(r.account, net, r.release_time)
        for r, net in zip(parsed, net_amounts)
    ]
    proofs = build_all_proofs(leaves)

    artifact = CommitmentArtifact(
        root=to_hex(proofs[0].root),
        proofs=[
            LeafProof(
                recipient=r.account,
                amount=net,
                release_time=r.release_time,
                proof=[to_hex(s) for s in proof.siblings],
            )
            for r, net, proof in zip(parsed, net_amounts, proofs)
        ],
        total_gross_amount=sum(r.amount for r in parsed),
        total_net_amount=sum(net_amounts),
        fee_rate=fee_rate,
        depth=compute_tree_depth(len(leaves)),
        leaves=[to_hex(leaf) for leaf in leaves],
    )
    logger.debug(
        f"Built commitment {artifact.root} over {len(leaves)} leaves "
        f"(gross={artifact.total_gross_amount}, net={artifact.total_net_amount})"
    )
    return artifact


def verify_leaf(
    root: str,
    recipient: str,
    amount: int,
    release_time: int,
    proof: Sequence[str],
) -> bool:
    """
    Check that (recipient, amount, release_time) is a leaf under root.

    Malformed inputs verify as False rather than raising.
    """
    try:
        leaf = hash_leaf(recipient, amount, release_time)
        siblings = [from_hex(node) for node in proof]
        return verify_leaf_in_root(leaf, siblings, from_hex(root))
    except (ValueError, AttributeError):
        return False


class CommitmentBuilder:
    """
    Builds commitments at the current fee rate and persists them.

    Usage:
        builder = CommitmentBuilder(ArtifactStore("deposits"), fee_source=lambda: ledger.fee_rate)
        artifact = builder.build(recipients)
        # depositor now registers artifact.root with artifact.total_gross_amount
    """

    def __init__(
        self,
        store: ArtifactStore,
        fee_source: Callable[[], int] | int,
    ) -> None:
        self.store = store
        self._fee_source = fee_source

    def current_fee_rate(self) -> int:
        if callable(self._fee_source):
            return self._fee_source()
        return self._fee_source

    def build(self, recipients: Sequence[RecipientInput]) -> CommitmentArtifact:
        """
        Build and persist an artifact.

        Raises:
            ValidationException: If the recipient list is invalid
            DuplicateCommitmentException: If an artifact for the root already exists
            StorageIOException: If the artifact cannot be written
        """
        fee_rate = self.current_fee_rate()
        artifact = build_commitment(recipients, fee_rate)
        self.store.create(artifact)
        logger.info(
            f"Stored commitment {artifact.root} "
            f"({len(artifact.proofs)} leaves, deposit {artifact.total_gross_amount} at {fee_rate} bp)"
        )
        return artifact


__all__ = [
    "RecipientInput",
    "parse_recipients",
    "build_commitment",
    "verify_leaf",
    "CommitmentBuilder",
]
