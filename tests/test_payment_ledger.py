"""
Tests for app/services/payment_ledger.py -- transaction ledger and reconciliation.

Covers:
- idempotent provider reconciliation (repeat events are no-ops)
- state machine enforcement (illegal transitions rejected, row unchanged)
- manual mark-paid for offline payments and owner refunds
- sum_paid and the order payment summary
"""

from decimal import Decimal

import pytest

from app.domain.enums import PaymentStatus
from app.domain.errors import IllegalPaymentTransition, NotFound
from app.services.payment_ledger import PaymentLedger

from conftest import TENANT, make_order


def record(db, order, provider="STRIPE", status=PaymentStatus.CREATED, provider_payment_id="pi_1", amount=None):
    ledger = PaymentLedger(db)
    tx_id = ledger.record_attempt(
        order_id=order.id,
        provider_code=provider,
        amount=amount if amount is not None else order.total,
        currency="USD",
        status=status,
        provider_payment_id=provider_payment_id,
    )
    db.commit()
    return tx_id


def status_of(db, tx_id):
    tx = PaymentLedger(db).repo.get(tx_id)
    db.refresh(tx)
    return tx.status


# ---------------------------------------------------------------------------
# record_attempt
# ---------------------------------------------------------------------------


class TestRecordAttempt:
    def test_initial_status_kept(self, db):
        order = make_order(db)
        tx_id = record(db, order, status=PaymentStatus.REQUIRES_ACTION)
        assert status_of(db, tx_id) == "REQUIRES_ACTION"

    def test_terminal_status_is_not_trusted_on_creation(self, db):
        order = make_order(db)
        tx_id = record(db, order, status=PaymentStatus.PAID)
        assert status_of(db, tx_id) == "CREATED"
        assert PaymentLedger(db).sum_paid(order.id) == Decimal("0.00")

    def test_provider_code_and_currency_normalised(self, db):
        order = make_order(db)
        tx_id = record(db, order, provider="stripe")
        tx = PaymentLedger(db).repo.get(tx_id)
        assert (tx.provider_code, tx.currency) == ("STRIPE", "usd")


# ---------------------------------------------------------------------------
# reconcile
# ---------------------------------------------------------------------------


class TestReconcile:
    def test_paid_event_applies_once(self, db):
        order = make_order(db)
        tx_id = record(db, order)
        ledger = PaymentLedger(db)

        assert ledger.reconcile("STRIPE", "pi_1", PaymentStatus.PAID) is True
        assert ledger.reconcile("stripe", "pi_1", PaymentStatus.PAID) is False
        assert status_of(db, tx_id) == "PAID"
        assert ledger.sum_paid(order.id) == Decimal("41.00")

    def test_paid_back_to_created_is_rejected(self, db):
        order = make_order(db)
        tx_id = record(db, order)
        ledger = PaymentLedger(db)
        ledger.reconcile("STRIPE", "pi_1", PaymentStatus.PAID)

        with pytest.raises(IllegalPaymentTransition):
            ledger.reconcile("STRIPE", "pi_1", PaymentStatus.CREATED)
        assert status_of(db, tx_id) == "PAID"

    def test_requires_action_then_paid(self, db):
        order = make_order(db)
        tx_id = record(db, order)
        ledger = PaymentLedger(db)
        assert ledger.reconcile("STRIPE", "pi_1", PaymentStatus.REQUIRES_ACTION)
        assert ledger.reconcile("STRIPE", "pi_1", PaymentStatus.PAID)
        assert status_of(db, tx_id) == "PAID"

    def test_failed_is_terminal(self, db):
        order = make_order(db)
        record(db, order)
        ledger = PaymentLedger(db)
        ledger.reconcile("STRIPE", "pi_1", PaymentStatus.FAILED)
        with pytest.raises(IllegalPaymentTransition):
            ledger.reconcile("STRIPE", "pi_1", PaymentStatus.PAID)

    def test_provider_cannot_confirm_offline_payment(self, db):
        order = make_order(db)
        tx_id = record(db, order, provider="CASH", status=PaymentStatus.OFFLINE_PENDING, provider_payment_id="CASH_1")
        with pytest.raises(IllegalPaymentTransition):
            PaymentLedger(db).reconcile("CASH", "CASH_1", PaymentStatus.PAID)
        assert status_of(db, tx_id) == "OFFLINE_PENDING"

    def test_unknown_transaction(self, db):
        with pytest.raises(NotFound) as exc:
            PaymentLedger(db).reconcile("STRIPE", "pi_missing", PaymentStatus.PAID)
        assert exc.value.code == "TRANSACTION_NOT_FOUND"

    def test_lookup_is_per_provider(self, db):
        order = make_order(db)
        record(db, order, provider="STRIPE", provider_payment_id="X1")
        with pytest.raises(NotFound):
            PaymentLedger(db).reconcile("CASH", "X1", PaymentStatus.PAID)

    def test_stale_session_still_sees_current_status(self, db, session_factory):
        order = make_order(db)
        tx_id = record(db, order)
        stale = PaymentLedger(db)
        stale.repo.get(tx_id)  # loaded as CREATED into this session

        other = session_factory()
        try:
            PaymentLedger(other).reconcile("STRIPE", "pi_1", PaymentStatus.PAID)
        finally:
            other.close()

        assert stale.reconcile("STRIPE", "pi_1", PaymentStatus.PAID) is False


# ---------------------------------------------------------------------------
# Owner actions
# ---------------------------------------------------------------------------


class TestOwnerActions:
    def test_mark_paid_manually(self, db):
        order = make_order(db)
        tx_id = record(db, order, provider="CASH", status=PaymentStatus.OFFLINE_PENDING, provider_payment_id="CASH_1")
        ledger = PaymentLedger(db)

        assert ledger.mark_paid_manually(TENANT, order.id, actor_id=42) is True
        assert ledger.mark_paid_manually(TENANT, order.id, actor_id=42) is False

        tx = ledger.repo.get(tx_id)
        assert (tx.status, tx.updated_by) == ("PAID", 42)
        assert ledger.sum_paid(order.id) == Decimal("41.00")

    def test_mark_paid_requires_offline_payment(self, db):
        order = make_order(db)
        record(db, order)
        with pytest.raises(IllegalPaymentTransition):
            PaymentLedger(db).mark_paid_manually(TENANT, order.id, actor_id=42)

    def test_mark_paid_rejects_provider_paid_order(self, db):
        order = make_order(db)
        tx_id = record(db, order)
        ledger = PaymentLedger(db)
        ledger.reconcile("STRIPE", "pi_1", PaymentStatus.PAID)

        with pytest.raises(IllegalPaymentTransition):
            ledger.mark_paid_manually(TENANT, order.id, actor_id=42)
        assert ledger.repo.get(tx_id).updated_by is None

    def test_mark_paid_other_tenant(self, db):
        order = make_order(db, tenant_id=2)
        record(db, order, provider="CASH", status=PaymentStatus.OFFLINE_PENDING, provider_payment_id="CASH_1")
        with pytest.raises(NotFound):
            PaymentLedger(db).mark_paid_manually(TENANT, order.id, actor_id=42)

    def test_refund(self, db):
        order = make_order(db)
        tx_id = record(db, order)
        ledger = PaymentLedger(db)
        ledger.reconcile("STRIPE", "pi_1", PaymentStatus.PAID)

        assert ledger.mark_refunded(TENANT, tx_id, actor_id=42) is True
        assert status_of(db, tx_id) == "REFUNDED"
        assert ledger.sum_paid(order.id) == Decimal("0.00")

    def test_refund_unpaid_is_illegal(self, db):
        order = make_order(db)
        tx_id = record(db, order)
        with pytest.raises(IllegalPaymentTransition):
            PaymentLedger(db).mark_refunded(TENANT, tx_id, actor_id=42)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


class TestSummary:
    def test_unpaid(self, db):
        order = make_order(db)
        record(db, order)
        summary = PaymentLedger(db).summary(order.id, order.total)
        assert summary["payment_state"] == "UNPAID"
        assert summary["remaining_amount"] == Decimal("41.00")
        assert summary["fully_paid"] is False

    def test_partially_paid(self, db):
        order = make_order(db)
        record(db, order, amount=Decimal("20.00"), provider_payment_id="pi_a")
        record(db, order, amount=Decimal("21.00"), provider_payment_id="pi_b")
        ledger = PaymentLedger(db)
        ledger.reconcile("STRIPE", "pi_a", PaymentStatus.PAID)

        summary = ledger.summary(order.id, order.total)
        assert summary["payment_state"] == "PARTIALLY_PAID"
        assert summary["paid_amount"] == Decimal("20.00")
        assert summary["remaining_amount"] == Decimal("21.00")

        ledger.reconcile("STRIPE", "pi_b", PaymentStatus.PAID)
        summary = ledger.summary(order.id, order.total)
        assert summary["payment_state"] == "PAID"
        assert summary["fully_paid"] is True
        assert summary["remaining_amount"] == Decimal("0.00")
