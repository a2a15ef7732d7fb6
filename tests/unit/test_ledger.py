"""
Release Ledger Unit Tests
Tests for ledger/ledger.py

1. Deposit creation: fee exactness, validation, duplicates, pause gating
2. Eligibility: check order and the inclusive release-time boundary
3. Withdrawal: claim monotonicity, double-spend prevention, rollback
4. Owner operations: recovery, fee and pause setters, role management
5. End-to-end: 100 units, 1% fee, leaves 50 and 49
"""
import threading

import pytest

from builder.commitment import build_commitment
from core.crypto.hashing import ZERO_ROOT
from core.schemas.errors import (
    AlreadyClaimedException,
    DuplicateCommitmentException,
    ErrorCodes,
    InsufficientBalanceException,
    NotFoundException,
    NotYetReleasableException,
    PausedException,
    ProofInvalidException,
    TransferFailureException,
    UnauthorizedException,
    ValidationException,
)
from ledger import EventKind, InMemoryTransfers, ManualClock, ReleaseLedger, Role
from fixtures import (
    ADMIN,
    ALICE,
    BASE_TIME,
    BOB,
    CAROL,
    DEPOSITOR,
    MALLORY,
    OWNER,
    fund_artifact,
    make_artifact,
    make_ledger,
    make_recipient,
    make_recipients,
)


def _withdraw(harness, artifact, index=0, caller=ADMIN):
    leaf = artifact.proofs[index]
    return harness.ledger.execute_withdrawal(
        artifact.root, leaf.recipient, leaf.amount, leaf.release_time, leaf.proof, caller
    )


def _check(harness, artifact, index=0):
    leaf = artifact.proofs[index]
    return harness.ledger.check_eligibility(
        artifact.root, leaf.recipient, leaf.amount, leaf.release_time, leaf.proof
    )


class TestConstruction:
    """Tests for initial ledger state."""

    def test_initial_roles_and_fee(self, harness):
        ledger = harness.ledger

        assert ledger.has_role(Role.OWNER, OWNER)
        assert ledger.has_role(Role.ADMIN, ADMIN)
        assert not ledger.has_role(Role.ADMIN, OWNER)
        assert ledger.fee_rate == 100
        assert ledger.fee_recipient == OWNER
        assert ledger.paused is False
        assert ledger.total_active_roots() == 0

    def test_invalid_initial_fee_rejected(self):
        with pytest.raises(ValidationException):
            ReleaseLedger(OWNER, ADMIN, transfers=InMemoryTransfers(), fee_rate=1_001)

    def test_roles_case_insensitive(self, harness):
        assert harness.ledger.has_role(Role.ADMIN, ADMIN.upper().replace("0X", "0x"))


class TestCreateDeposit:
    """Tests for create_deposit()."""

    def test_fee_exactness(self, harness, artifact):
        fund_artifact(harness, artifact)

        fee = artifact.total_gross_amount * 100 // 10_000
        deposit = harness.ledger.get_deposit(artifact.root)
        assert deposit.remaining_amount == artifact.total_gross_amount - fee
        assert deposit.depositor == DEPOSITOR
        assert harness.transfers.balance_of(OWNER) == fee

    def test_registers_active_root(self, harness, artifact):
        fund_artifact(harness, artifact)

        assert harness.ledger.total_active_roots() == 1
        assert harness.ledger.root_at(0) == artifact.root

    def test_zero_value_rejected(self, harness, artifact):
        with pytest.raises(ValidationException, match="greater than zero"):
            harness.ledger.create_deposit(artifact.root, 0, DEPOSITOR)

    def test_zero_root_rejected(self, harness):
        with pytest.raises(ValidationException, match="Invalid Merkle root"):
            harness.ledger.create_deposit(ZERO_ROOT, 100, DEPOSITOR)

    def test_malformed_root_rejected(self, harness):
        with pytest.raises(ValidationException):
            harness.ledger.create_deposit("0x1234", 100, DEPOSITOR)

    def test_duplicate_rejected(self, harness, artifact):
        fund_artifact(harness, artifact)

        with pytest.raises(DuplicateCommitmentException):
            fund_artifact(harness, artifact)
        assert harness.ledger.total_active_roots() == 1

    def test_declared_total_above_net_rejected(self, harness, artifact):
        with pytest.raises(ValidationException, match="exceeds net"):
            harness.ledger.create_deposit(
                artifact.root,
                artifact.total_net_amount,  # fee makes the net smaller than the leaves
                DEPOSITOR,
                declared_total=artifact.total_net_amount,
            )
        assert harness.ledger.total_active_roots() == 0

    def test_paused_rejected(self, harness, artifact):
        harness.ledger.set_paused(True, OWNER)

        with pytest.raises(PausedException):
            fund_artifact(harness, artifact)

    def test_fee_transfer_failure_leaves_nothing(self, harness, artifact):
        harness.transfers.fail_for(OWNER)

        with pytest.raises(TransferFailureException):
            fund_artifact(harness, artifact)

        assert harness.ledger.total_active_roots() == 0
        with pytest.raises(NotFoundException):
            harness.ledger.get_deposit(artifact.root)
        assert harness.ledger.events == []

    def test_event_recorded(self, harness, artifact):
        fund_artifact(harness, artifact)

        events = harness.ledger.events
        assert [e.kind for e in events] == [EventKind.DEPOSIT_CREATED]
        assert events[0].data["root"] == artifact.root


class TestEligibility:
    """Tests for check_eligibility() ordering and boundaries."""

    def test_unknown_root_not_found(self, harness, artifact):
        with pytest.raises(NotFoundException, match="nonexistent deposit"):
            _check(harness, artifact)

    def test_bad_proof(self, harness, artifact):
        fund_artifact(harness, artifact)
        leaf = artifact.proofs[0]
        harness.clock.set(leaf.release_time)

        with pytest.raises(ProofInvalidException):
            harness.ledger.check_eligibility(
                artifact.root, leaf.recipient, leaf.amount + 1, leaf.release_time, leaf.proof
            )

    def test_proof_checked_before_time(self, harness, artifact):
        """A forged leaf is reported as invalid even before its release time."""
        fund_artifact(harness, artifact)
        leaf = artifact.proofs[0]

        with pytest.raises(ProofInvalidException):
            harness.ledger.check_eligibility(
                artifact.root, MALLORY, leaf.amount, leaf.release_time, leaf.proof
            )

    def test_proof_from_other_commitment_rejected(self, harness):
        first = make_artifact(make_recipients(count=3))
        second = make_artifact(make_recipients(count=3, amount=2_000))
        fund_artifact(harness, first)
        fund_artifact(harness, second)
        leaf = first.proofs[0]
        harness.clock.set(leaf.release_time)

        with pytest.raises(ProofInvalidException):
            harness.ledger.check_eligibility(
                second.root, leaf.recipient, leaf.amount, leaf.release_time, leaf.proof
            )
        assert _check(harness, first) is True

    def test_release_time_boundary(self, harness, artifact):
        fund_artifact(harness, artifact)
        release_time = artifact.proofs[0].release_time

        harness.clock.set(release_time - 1)
        with pytest.raises(NotYetReleasableException) as exc_info:
            _check(harness, artifact)
        assert exc_info.value.code == ErrorCodes.NOT_YET_RELEASABLE

        harness.clock.set(release_time)
        assert _check(harness, artifact) is True

    def test_claimed_leaf_reports_already_claimed(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        _withdraw(harness, artifact, 0)

        with pytest.raises(AlreadyClaimedException):
            _check(harness, artifact, 0)

    def test_insufficient_balance(self, harness):
        artifact = build_commitment([make_recipient(ALICE, 1_000, BASE_TIME)], 100)
        harness.ledger.create_deposit(artifact.root, 500, DEPOSITOR)
        harness.clock.set(BASE_TIME)

        with pytest.raises(InsufficientBalanceException):
            _check(harness, artifact)

    def test_is_eligible_wrapper(self, harness, artifact):
        fund_artifact(harness, artifact)
        assert harness.ledger.is_eligible(
            artifact.root, *_leaf_args(artifact, 0)
        ) is False

        harness.clock.set(BASE_TIME)
        assert harness.ledger.is_eligible(artifact.root, *_leaf_args(artifact, 0)) is True

    def test_check_does_not_mutate(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        before = harness.ledger.get_deposit(artifact.root)

        _check(harness, artifact)

        assert harness.ledger.get_deposit(artifact.root) == before
        leaf = artifact.proofs[0]
        assert not harness.ledger.has_withdrawn(artifact.root, leaf.recipient, leaf.release_time)


def _leaf_args(artifact, index):
    leaf = artifact.proofs[index]
    return leaf.recipient, leaf.amount, leaf.release_time, leaf.proof


class TestExecuteWithdrawal:
    """Tests for execute_withdrawal()."""

    def test_pays_recipient_and_sets_flag(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        leaf = artifact.proofs[0]
        before = harness.ledger.get_deposit(artifact.root).remaining_amount

        _withdraw(harness, artifact, 0)

        assert harness.transfers.balance_of(leaf.recipient) == leaf.amount
        assert harness.ledger.has_withdrawn(artifact.root, leaf.recipient, leaf.release_time)
        assert harness.ledger.get_deposit(artifact.root).remaining_amount == before - leaf.amount

    def test_double_spend_prevented(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        leaf = artifact.proofs[0]
        _withdraw(harness, artifact, 0)

        with pytest.raises(AlreadyClaimedException):
            _withdraw(harness, artifact, 0)
        assert harness.transfers.balance_of(leaf.recipient) == leaf.amount

    def test_non_admin_rejected_first(self, harness, artifact):
        """Authorization is checked before existence or pause."""
        harness.ledger.set_paused(True, OWNER)

        with pytest.raises(UnauthorizedException):
            _withdraw(harness, artifact, 0, caller=MALLORY)

    def test_owner_is_not_admin(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)

        with pytest.raises(UnauthorizedException):
            _withdraw(harness, artifact, 0, caller=OWNER)

    def test_paused_rejected(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        harness.ledger.set_paused(True, OWNER)

        with pytest.raises(PausedException):
            _withdraw(harness, artifact, 0)

        harness.ledger.set_paused(False, OWNER)
        _withdraw(harness, artifact, 0)

    def test_too_early_rejected(self, harness, artifact):
        fund_artifact(harness, artifact)

        with pytest.raises(NotYetReleasableException):
            _withdraw(harness, artifact, 0)

    def test_transfer_failure_rolls_back(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        leaf = artifact.proofs[0]
        before = harness.ledger.get_deposit(artifact.root)
        events_before = len(harness.ledger.events)
        harness.transfers.fail_for(leaf.recipient)

        with pytest.raises(TransferFailureException):
            _withdraw(harness, artifact, 0)

        assert harness.ledger.get_deposit(artifact.root) == before
        assert not harness.ledger.has_withdrawn(artifact.root, leaf.recipient, leaf.release_time)
        assert len(harness.ledger.events) == events_before

        harness.transfers.recover(leaf.recipient)
        _withdraw(harness, artifact, 0)
        assert harness.ledger.has_withdrawn(artifact.root, leaf.recipient, leaf.release_time)

    def test_failed_final_withdrawal_restores_root_position(self, harness):
        first = make_artifact(make_recipients(count=2))
        single = build_commitment([make_recipient(CAROL, 1_000, BASE_TIME)], 100)
        last = make_artifact(make_recipients(count=3))
        for a in (first, single, last):
            fund_artifact(harness, a)
        harness.clock.set(BASE_TIME)
        harness.transfers.fail_for(CAROL)

        with pytest.raises(TransferFailureException):
            _withdraw(harness, single, 0)

        assert [harness.ledger.root_at(i) for i in range(3)] == [first.root, single.root, last.root]

    def test_concurrent_withdrawals_single_payout(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)
        leaf = artifact.proofs[0]
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker():
            try:
                _withdraw(harness, artifact, 0)
                outcome = "paid"
            except AlreadyClaimedException:
                outcome = "claimed"
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("paid") == 1
        assert harness.transfers.balance_of(leaf.recipient) == leaf.amount


class TestEndToEnd:
    """100 units at 1%: fee 1, leaves 50 and 49."""

    def test_two_leaf_scenario(self):
        harness = make_ledger()
        artifact = build_commitment(
            [make_recipient(ALICE, 50, BASE_TIME), make_recipient(BOB, 49, BASE_TIME + 60)],
            100,
        )
        assert [p.amount for p in artifact.proofs] == [50, 49]

        harness.ledger.create_deposit(artifact.root, 100, DEPOSITOR, declared_total=99)
        assert harness.transfers.balance_of(OWNER) == 1
        assert harness.ledger.get_deposit(artifact.root).remaining_amount == 99

        harness.clock.set(BASE_TIME)
        _withdraw(harness, artifact, 0)
        assert harness.ledger.get_deposit(artifact.root).remaining_amount == 49

        with pytest.raises(NotYetReleasableException):
            _withdraw(harness, artifact, 1)

        harness.clock.set(BASE_TIME + 60)
        _withdraw(harness, artifact, 1)

        assert harness.ledger.total_active_roots() == 0
        with pytest.raises(NotFoundException):
            harness.ledger.get_deposit(artifact.root)
        assert harness.transfers.balance_of(ALICE) == 50
        assert harness.transfers.balance_of(BOB) == 49
        assert harness.ledger.total_locked() == 0

    def test_partial_remaining_keeps_deposit_active(self):
        harness = make_ledger()
        artifact = build_commitment([make_recipient(ALICE, 50, BASE_TIME)], 100)
        harness.ledger.create_deposit(artifact.root, 51, DEPOSITOR)
        harness.clock.set(BASE_TIME)

        _withdraw(harness, artifact, 0)

        # remaining 51 - 0 fee - 50 = 1, so the deposit stays active
        assert harness.ledger.get_deposit(artifact.root).remaining_amount == 1


class TestOwnerOperations:
    """Tests for recovery, setters and role management."""

    def test_emergency_withdraw_returns_remaining(self, harness, artifact):
        fund_artifact(harness, artifact)
        remaining = harness.ledger.get_deposit(artifact.root).remaining_amount

        returned = harness.ledger.emergency_withdraw(artifact.root, OWNER)

        assert returned == remaining
        assert harness.transfers.balance_of(DEPOSITOR) == remaining
        assert harness.ledger.total_active_roots() == 0

    def test_emergency_withdraw_works_while_paused(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.ledger.set_paused(True, OWNER)

        harness.ledger.emergency_withdraw(artifact.root, OWNER)
        assert harness.ledger.total_active_roots() == 0

    def test_emergency_withdraw_requires_owner(self, harness, artifact):
        fund_artifact(harness, artifact)

        with pytest.raises(UnauthorizedException):
            harness.ledger.emergency_withdraw(artifact.root, ADMIN)

    def test_emergency_withdraw_rolls_back(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.transfers.fail_for(DEPOSITOR)

        with pytest.raises(TransferFailureException):
            harness.ledger.emergency_withdraw(artifact.root, OWNER)
        assert harness.ledger.root_at(0) == artifact.root

    def test_emergency_withdraw_unknown_root(self, harness, artifact):
        with pytest.raises(NotFoundException):
            harness.ledger.emergency_withdraw(artifact.root, OWNER)

    def test_delete_deposit_pays_nobody(self, harness, artifact):
        fund_artifact(harness, artifact)
        sent_before = harness.transfers.total_sent

        harness.ledger.delete_deposit(artifact.root, OWNER)

        assert harness.ledger.total_active_roots() == 0
        assert harness.transfers.total_sent == sent_before
        with pytest.raises(NotFoundException):
            harness.ledger.delete_deposit(artifact.root, OWNER)

    def test_delete_deposit_works_while_paused(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.ledger.set_paused(True, OWNER)

        deleted = harness.ledger.delete_deposit(artifact.root, OWNER)

        assert deleted.root == artifact.root
        assert harness.ledger.total_active_roots() == 0
        assert harness.ledger.paused

    @pytest.mark.parametrize("caller", [ADMIN, DEPOSITOR, MALLORY])
    def test_delete_deposit_requires_owner(self, harness, artifact, caller):
        fund_artifact(harness, artifact)

        with pytest.raises(UnauthorizedException):
            harness.ledger.delete_deposit(artifact.root, caller)
        assert harness.ledger.root_at(0) == artifact.root

    def test_set_fee_rate(self, harness):
        harness.ledger.set_fee_rate(250, OWNER)

        assert harness.ledger.fee_rate == 250
        event = harness.ledger.events[-1]
        assert event.kind == EventKind.FEE_UPDATED
        assert event.data == {"old": 100, "new": 250}

    @pytest.mark.parametrize("rate", [0, 1_001, -1])
    def test_set_fee_rate_out_of_range(self, harness, rate):
        with pytest.raises(ValidationException):
            harness.ledger.set_fee_rate(rate, OWNER)
        assert harness.ledger.fee_rate == 100

    def test_set_fee_rate_requires_owner(self, harness):
        with pytest.raises(UnauthorizedException):
            harness.ledger.set_fee_rate(200, ADMIN)

    def test_unauthorized_checked_before_validation(self, harness):
        with pytest.raises(UnauthorizedException):
            harness.ledger.set_fee_rate(5_000, MALLORY)

    def test_new_fee_applies_to_next_deposit(self, harness):
        harness.ledger.set_fee_rate(1_000, OWNER)
        artifact = build_commitment([make_recipient(ALICE, 1_000, BASE_TIME)], 1_000)

        harness.ledger.create_deposit(artifact.root, 1_000, DEPOSITOR, declared_total=900)
        assert harness.ledger.get_deposit(artifact.root).remaining_amount == 900
        assert harness.transfers.balance_of(OWNER) == 100

    def test_set_fee_recipient(self, harness, artifact):
        harness.ledger.set_fee_recipient(CAROL, OWNER)
        fund_artifact(harness, artifact)

        assert harness.ledger.fee_recipient == CAROL
        assert harness.transfers.balance_of(CAROL) > 0
        assert harness.ledger.events[0].data == {"old": OWNER, "new": CAROL}

    def test_set_fee_recipient_rejects_zero_address(self, harness):
        with pytest.raises(ValidationException):
            harness.ledger.set_fee_recipient("0x" + "00" * 20, OWNER)

    def test_set_paused_requires_owner(self, harness):
        with pytest.raises(UnauthorizedException):
            harness.ledger.set_paused(True, ADMIN)

    def test_grant_and_revoke_admin(self, harness, artifact):
        fund_artifact(harness, artifact)
        harness.clock.set(BASE_TIME)

        assert harness.ledger.grant_role(Role.ADMIN, CAROL, OWNER) is True
        assert harness.ledger.grant_role(Role.ADMIN, CAROL, OWNER) is False
        _withdraw(harness, artifact, 0, caller=CAROL)

        assert harness.ledger.revoke_role(Role.ADMIN, CAROL, OWNER) is True
        with pytest.raises(UnauthorizedException):
            _withdraw(harness, artifact, 1, caller=CAROL)

    def test_grant_requires_owner(self, harness):
        with pytest.raises(UnauthorizedException):
            harness.ledger.grant_role(Role.ADMIN, MALLORY, ADMIN)


class TestReadBoundary:
    """Tests for index-based reads."""

    def test_root_at_out_of_range(self, harness):
        with pytest.raises(NotFoundException):
            harness.ledger.root_at(0)
        with pytest.raises(NotFoundException):
            harness.ledger.root_at(-1)

    def test_has_withdrawn_defaults_false(self, harness, artifact):
        assert harness.ledger.has_withdrawn(artifact.root, ALICE, BASE_TIME) is False

    def test_manual_clock_never_goes_back(self):
        clock = ManualClock(10)
        with pytest.raises(ValueError):
            clock.set(9)
        assert clock.advance(5) == 15
