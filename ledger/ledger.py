"""
Release Ledger

Authoritative bookkeeping for commitment-gated releases.

State machine per root:
    absent -> active (remaining > 0) -> active (smaller remaining) -> ... -> removed

Operations:
- create_deposit: register a root with value, taking the fee
- check_eligibility: read-only proof/claim/time/balance checks
- execute_withdrawal: admin-only payout of one leaf
- emergency_withdraw / delete_deposit: owner-only recovery
- set_fee_rate / set_fee_recipient / set_paused / grant_role / revoke_role

Atomicity:
Every operation runs under one re-entrant lock. Mutations write their
internal effects first, then attempt the value transfer; if the transfer
raises, the effects are undone before the lock is released, so no caller
ever observes a partial state.

Authorization is checked before any other validation on every mutating call.
Recovery operations (emergency_withdraw, delete_deposit) stay available
while paused; pause halts deposits and normal withdrawals only.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Sequence

from builder.commitment import verify_leaf
from core.crypto.hashing import ZERO_ROOT, is_account, is_digest
from core.fees import MAX_FEE, compute_fee, validate_fee_rate
from core.schemas.errors import (
    AlreadyClaimedException,
    DuplicateCommitmentException,
    EscrowException,
    InsufficientBalanceException,
    NotFoundException,
    NotYetReleasableException,
    PausedException,
    ProofInvalidException,
    TransferFailureException,
    ValidationException,
)
from core.schemas.release import Deposit
from ledger.clock import Clock, SystemClock
from ledger.events import EventKind, LedgerEvent
from ledger.roles import Role, RoleRegistry
from ledger.transfers import ValueTransfer


logger = logging.getLogger(__name__)

DEFAULT_FEE_RATE = 100  # 1%

WithdrawalKey = tuple[str, str, int]


def _account(value: Any, field_path: str) -> str:
    if not is_account(value):
        raise ValidationException(f"Invalid account identifier: {value!r}", field_path=field_path)
    if value.lower() == "0x" + "00" * 20:
        raise ValidationException("Account identifier cannot be the zero address", field_path=field_path)
    return value.lower()


def _amount(value: Any, field_path: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationException(f"{field_path} must be an integer", field_path=field_path)
    return value


class ReleaseLedger:
    """
    Deposits, single-use withdrawal records, fee configuration and roles.

    Usage:
        ledger = ReleaseLedger(owner, admin, transfers=InMemoryTransfers())
        ledger.create_deposit(artifact.root, artifact.total_gross_amount, depositor)
        ledger.execute_withdrawal(root, recipient, amount, release_time, proof, admin)
    """

    MAX_FEE = MAX_FEE

    def __init__(
        self,
        owner: str,
        admin: str,
        *,
        transfers: ValueTransfer,
        clock: Clock | None = None,
        fee_rate: int = DEFAULT_FEE_RATE,
        fee_recipient: str | None = None,
    ) -> None:
        owner = _account(owner, "owner")
        admin = _account(admin, "admin")

        self._lock = threading.RLock()
        self._transfers = transfers
        self._clock: Clock = clock or SystemClock()

        self._roles = RoleRegistry()
        self._roles.grant(owner, Role.OWNER)
        self._roles.grant(admin, Role.ADMIN)

        self._fee_rate = validate_fee_rate(fee_rate)
        self._fee_recipient = _account(fee_recipient or owner, "fee_recipient")
        self._paused = False

        self._deposits: dict[str, Deposit] = {}
        self._active_roots: list[str] = []
        # (root, recipient, release_time) -> claimed
        self._withdrawals: dict[WithdrawalKey, bool] = {}
        self._events: list[LedgerEvent] = []

    # -------------------------------------------------------------------------
    # Read boundary
    # -------------------------------------------------------------------------

    @property
    def fee_rate(self) -> int:
        return self._fee_rate

    @property
    def fee_recipient(self) -> str:
        return self._fee_recipient

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def events(self) -> list[LedgerEvent]:
        with self._lock:
            return list(self._events)

    def now(self) -> int:
        return self._clock.now()

    def has_role(self, role: Role, principal: str) -> bool:
        return self._roles.has_role(principal, role)

    def total_active_roots(self) -> int:
        with self._lock:
            return len(self._active_roots)

    def root_at(self, index: int) -> str:
        """
        Raises:
            NotFoundException: If index is out of bounds
        """
        with self._lock:
            if index < 0 or index >= len(self._active_roots):
                raise NotFoundException(
                    f"Index out of bounds: {index}",
                    details={"index": index, "total": len(self._active_roots)},
                )
            return self._active_roots[index]

    def active_roots(self) -> list[str]:
        with self._lock:
            return list(self._active_roots)

    def get_deposit(self, root: str) -> Deposit:
        """
        Raises:
            NotFoundException: If root has no active deposit
        """
        with self._lock:
            return self._require_deposit(root)

    def has_withdrawn(self, root: str, recipient: str, release_time: int) -> bool:
        with self._lock:
            return self._withdrawals.get(self._key(root, recipient, release_time), False)

    def total_locked(self) -> int:
        """Sum of remaining balances across active deposits."""
        with self._lock:
            return sum(d.remaining_amount for d in self._deposits.values())

    def check_eligibility(
        self,
        root: str,
        recipient: str,
        amount: int,
        release_time: int,
        proof: Sequence[str],
    ) -> bool:
        """
        Run every withdrawal precondition without mutating state.

        Checks, in order: deposit exists, proof verifies, not claimed,
        release time reached (inclusive), balance covers amount.

        Returns:
            True when all checks pass

        Raises:
            NotFoundException, ProofInvalidException, AlreadyClaimedException,
            NotYetReleasableException, InsufficientBalanceException
        """
        with self._lock:
            self._check(root, recipient, amount, release_time, proof)
            return True

    def is_eligible(
        self,
        root: str,
        recipient: str,
        amount: int,
        release_time: int,
        proof: Sequence[str],
    ) -> bool:
        """Boolean form of check_eligibility."""
        try:
            return self.check_eligibility(root, recipient, amount, release_time, proof)
        except EscrowException:
            return False

    # -------------------------------------------------------------------------
    # Deposits
    # -------------------------------------------------------------------------

    def create_deposit(
        self,
        root: str,
        value: int,
        depositor: str,
        declared_total: int | None = None,
    ) -> Deposit:
        """
        Register root with value; the fee goes to the fee recipient.

        Args:
            root: Commitment root (0x + 64 hex, non-zero)
            value: Gross value in smallest units
            depositor: Account that funded the deposit
            declared_total: Optional sum of leaf amounts the root promises;
                must not exceed the net amount

        Returns:
            The registered Deposit

        Raises:
            PausedException, ValidationException, DuplicateCommitmentException,
            TransferFailureException
        """
        with self._lock:
            if self._paused:
                raise PausedException("create_deposit")

            root = self._validate_root(root)
            value = _amount(value, "value")
            if value <= 0:
                raise ValidationException("Deposit amount must be greater than zero", field_path="value")
            depositor = _account(depositor, "depositor")
            if root in self._deposits:
                raise DuplicateCommitmentException(root)

            fee = compute_fee(value, self._fee_rate)
            net = value - fee

            if declared_total is not None:
                declared_total = _amount(declared_total, "declared_total")
                if declared_total <= 0 or declared_total > net:
                    raise ValidationException(
                        f"Declared total {declared_total} exceeds net deposit {net}",
                        field_path="declared_total",
                        details={"declared_total": declared_total, "net": net},
                    )

            deposit = Deposit(root=root, depositor=depositor, remaining_amount=net)
            self._insert(deposit)

            if fee > 0:
                try:
                    self._transfers.send(self._fee_recipient, fee)
                except Exception as e:
                    self._remove(root)
                    logger.warning(f"Fee transfer failed for deposit {root}: {e}")
                    raise TransferFailureException(
                        self._fee_recipient, fee, details={"root": root, "stage": "fee"}
                    ) from e

            self._emit(
                EventKind.DEPOSIT_CREATED,
                root=root, depositor=depositor, value=value, fee=fee, net=net,
            )
            logger.info(f"Deposit {root} created by {depositor}: value={value} fee={fee} net={net}")
            return deposit

    # -------------------------------------------------------------------------
    # Withdrawals
    # -------------------------------------------------------------------------

    def execute_withdrawal(
        self,
        root: str,
        recipient: str,
        amount: int,
        release_time: int,
        proof: Sequence[str],
        caller: str,
    ) -> Deposit | None:
        """
        Pay one leaf to its recipient.

        The claim flag and the balance decrement are written before the
        transfer; a failed transfer reverts both.

        Returns:
            The deposit after the withdrawal, or None if it was exhausted and removed

        Raises:
            UnauthorizedException, PausedException, any check_eligibility error,
            TransferFailureException
        """
        with self._lock:
            self._roles.require(caller, Role.ADMIN)
            if self._paused:
                raise PausedException("execute_withdrawal")

            deposit, key = self._check(root, recipient, amount, release_time, proof)
            root, recipient = key[0], key[1]

            # Effects
            self._withdrawals[key] = True
            remaining = deposit.remaining_amount - amount
            removed_at: int | None = None
            updated: Deposit | None = None
            if remaining == 0:
                removed_at = self._remove(root)
            else:
                updated = deposit.model_copy(update={"remaining_amount": remaining})
                self._deposits[root] = updated

            # Interaction
            try:
                self._transfers.send(recipient, amount)
            except Exception as e:
                del self._withdrawals[key]
                if removed_at is not None:
                    self._restore(deposit, removed_at)
                else:
                    self._deposits[root] = deposit
                logger.warning(f"Withdrawal transfer failed for {recipient} on {root}: {e}")
                raise TransferFailureException(
                    recipient, amount, details={"root": root, "release_time": release_time}
                ) from e

            self._emit(
                EventKind.WITHDRAWAL_EXECUTED,
                root=root, recipient=recipient, amount=amount,
                release_time=release_time, remaining=remaining,
            )
            logger.info(
                f"Withdrawal {root} -> {recipient}: amount={amount} "
                f"release_time={release_time} remaining={remaining}"
            )
            return updated

    # -------------------------------------------------------------------------
    # Owner operations
    # -------------------------------------------------------------------------

    def emergency_withdraw(self, root: str, caller: str) -> int:
        """
        Return the full remaining balance to the depositor and remove the deposit.

        Bypasses proof and claim checks, and the pause flag.

        Returns:
            The amount returned
        """
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            deposit = self._require_deposit(root)
            root = deposit.root

            index = self._remove(root)
            try:
                self._transfers.send(deposit.depositor, deposit.remaining_amount)
            except Exception as e:
                self._restore(deposit, index)
                logger.warning(f"Emergency withdrawal transfer failed for {root}: {e}")
                raise TransferFailureException(
                    deposit.depositor, deposit.remaining_amount, details={"root": root}
                ) from e

            self._emit(
                EventKind.EMERGENCY_WITHDRAWAL,
                root=root, depositor=deposit.depositor, amount=deposit.remaining_amount,
            )
            logger.warning(
                f"Emergency withdrawal of {deposit.remaining_amount} from {root} "
                f"to {deposit.depositor} by {caller}"
            )
            return deposit.remaining_amount

    def delete_deposit(self, root: str, caller: str) -> Deposit:
        """Remove a deposit's bookkeeping without paying anyone."""
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            deposit = self._require_deposit(root)
            self._remove(deposit.root)
            self._emit(
                EventKind.DEPOSIT_DELETED,
                root=deposit.root, remaining=deposit.remaining_amount,
            )
            logger.warning(f"Deposit {deposit.root} deleted by {caller} (remaining={deposit.remaining_amount})")
            return deposit

    def set_fee_rate(self, fee_rate: int, caller: str) -> None:
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            validate_fee_rate(fee_rate)
            old = self._fee_rate
            self._fee_rate = fee_rate
            self._emit(EventKind.FEE_UPDATED, old=old, new=fee_rate)
            logger.info(f"Fee rate updated: {old} -> {fee_rate}")

    def set_fee_recipient(self, fee_recipient: str, caller: str) -> None:
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            fee_recipient = _account(fee_recipient, "fee_recipient")
            old = self._fee_recipient
            self._fee_recipient = fee_recipient
            self._emit(EventKind.FEE_RECIPIENT_UPDATED, old=old, new=fee_recipient)
            logger.info(f"Fee recipient updated: {old} -> {fee_recipient}")

    def set_paused(self, paused: bool, caller: str) -> None:
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            if not isinstance(paused, bool):
                raise ValidationException("paused must be a boolean", field_path="paused")
            old = self._paused
            self._paused = paused
            self._emit(EventKind.PAUSED_UPDATED, old=old, new=paused)
            logger.info(f"Paused updated: {old} -> {paused}")

    def grant_role(self, role: Role, principal: str, caller: str) -> bool:
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            principal = _account(principal, "principal")
            granted = self._roles.grant(principal, role)
            if granted:
                self._emit(EventKind.ROLE_GRANTED, role=role.value, principal=principal, by=caller.lower())
            return granted

    def revoke_role(self, role: Role, principal: str, caller: str) -> bool:
        with self._lock:
            self._roles.require(caller, Role.OWNER)
            principal = _account(principal, "principal")
            revoked = self._roles.revoke(principal, role)
            if revoked:
                self._emit(EventKind.ROLE_REVOKED, role=role.value, principal=principal, by=caller.lower())
            return revoked

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    @staticmethod
    def _key(root: str, recipient: str, release_time: int) -> WithdrawalKey:
        root = root.lower() if isinstance(root, str) else root
        recipient = recipient.lower() if isinstance(recipient, str) else recipient
        return (root, recipient, release_time)

    @staticmethod
    def _validate_root(root: Any) -> str:
        if not is_digest(root):
            raise ValidationException(f"Invalid Merkle root: {root!r}", field_path="root")
        root = root.lower()
        if root == ZERO_ROOT:
            raise ValidationException("Invalid Merkle root", field_path="root")
        return root

    def _require_deposit(self, root: str) -> Deposit:
        deposit = self._deposits.get(root.lower() if isinstance(root, str) else root)
        if deposit is None:
            raise NotFoundException(
                "Query for nonexistent deposit",
                details={"root": root},
            )
        return deposit

    def _check(
        self,
        root: str,
        recipient: str,
        amount: int,
        release_time: int,
        proof: Sequence[str],
    ) -> tuple[Deposit, WithdrawalKey]:
        deposit = self._require_deposit(root)
        root = deposit.root

        if not verify_leaf(root, recipient, amount, release_time, list(proof)):
            raise ProofInvalidException(
                root, details={"recipient": recipient, "release_time": release_time}
            )

        key = self._key(root, recipient, release_time)
        if self._withdrawals.get(key, False):
            raise AlreadyClaimedException(root, key[1], release_time)

        now = self._clock.now()
        if now < release_time:
            raise NotYetReleasableException(release_time, now)

        if deposit.remaining_amount < amount:
            raise InsufficientBalanceException(root, amount, deposit.remaining_amount)

        return deposit, key

    def _insert(self, deposit: Deposit) -> None:
        self._deposits[deposit.root] = deposit
        self._active_roots.append(deposit.root)

    def _remove(self, root: str) -> int:
        """Drop a deposit; returns its former position in the active list."""
        del self._deposits[root]
        index = self._active_roots.index(root)
        self._active_roots.pop(index)
        return index

    def _restore(self, deposit: Deposit, index: int) -> None:
        self._deposits[deposit.root] = deposit
        self._active_roots.insert(index, deposit.root)

    def _emit(self, kind: EventKind, **data: Any) -> None:
        self._events.append(
            LedgerEvent(
                sequence=len(self._events),
                kind=kind,
                timestamp=self._clock.now(),
                data=data,
            )
        )


__all__ = ["DEFAULT_FEE_RATE", "ReleaseLedger"]
