# app/services/payment_ledger.py
from decimal import Decimal

from sqlalchemy.orm import Session

from app.data.models.payment import PaymentTransactionModel
from app.domain.enums import (
    PaymentStatus,
    OrderPaymentState,
    PROVIDER_TRANSITIONS,
    MANUAL_TRANSITIONS,
    INITIAL_PAYMENT_STATUSES,
)
from app.domain.errors import NotFound, IllegalPaymentTransition, ConcurrencyConflict
from app.domain.money import money, ZERO
from app.repos.order_repo import OrderRepo
from app.repos.payment_repo import PaymentTransactionRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)

_CAS_ATTEMPTS = 3


class PaymentLedger:
    """
    Ksiega transakcji platniczych.

    Suma kwot transakcji PAID dla zamowienia jest jedynym zrodlem prawdy
    o tym ile zaplacono. Status zmienia sie tylko po legalnych krawedziach
    maszyny stanow i zawsze warunkowym UPDATE-em (compare-and-set), wiec
    webhook i akcja wlasciciela na tym samym wierszu sie nie nadpisza.
    """

    def __init__(self, db: Session):
        self.repo = PaymentTransactionRepo(db)
        self.orders = OrderRepo(db)

    def record_attempt(
        self,
        order_id: int,
        provider_code: str,
        amount: Decimal,
        currency: str,
        status: PaymentStatus = PaymentStatus.CREATED,
        provider_payment_id: str | None = None,
    ) -> int:
        """Dodaje wiersz bez commita - wywolujacy commituje w swojej jednostce pracy."""
        if status not in INITIAL_PAYMENT_STATUSES:
            #wynik providera potwierdza dopiero rekoncyliacja
            status = PaymentStatus.CREATED

        tx = self.repo.add(
            PaymentTransactionModel(
                order_id=order_id,
                provider_code=provider_code.strip().upper(),
                provider_payment_id=provider_payment_id,
                amount=money(amount),
                currency=currency.lower(),
                status=status.value,
            )
        )
        return tx.id

    def _transition(self, tx: PaymentTransactionModel, new_status: PaymentStatus, allowed: dict, actor_id: int | None) -> bool:
        for _ in range(_CAS_ATTEMPTS):
            self.repo.db.refresh(tx)
            current = PaymentStatus(tx.status)

            if current == new_status:
                #powtorzony event - sukces bez efektu
                logger.info(f"Transaction {tx.id} already {new_status.value}, nothing to apply")
                return False

            if new_status not in allowed.get(current, set()):
                logger.warning(
                    f"ANOMALY: illegal payment transition {current.value} -> {new_status.value} "
                    f"for transaction {tx.id} ({tx.provider_code}/{tx.provider_payment_id})"
                )
                raise IllegalPaymentTransition(
                    f"Transition {current.value} -> {new_status.value} is not allowed"
                )

            if self.repo.compare_and_set_status(tx.id, current.value, new_status.value, actor_id):
                self.repo.commit()
                logger.info(f"Transaction {tx.id}: {current.value} -> {new_status.value}")
                return True

            #ktos zmienil status w miedzyczasie - wczytaj i sprawdz jeszcze raz
            self.repo.rollback()

        raise ConcurrencyConflict(f"Transaction {tx.id} is being updated concurrently")

    def reconcile(self, provider_code: str, provider_payment_id: str, new_status: PaymentStatus) -> bool:
        provider_code = provider_code.strip().upper()
        tx = self.repo.find_by_provider(provider_code, provider_payment_id)
        if tx is None:
            logger.warning(f"Reconcile for unknown transaction {provider_code}/{provider_payment_id}")
            raise NotFound("Payment transaction not found", code="TRANSACTION_NOT_FOUND")

        return self._transition(tx, PaymentStatus(new_status), PROVIDER_TRANSITIONS, actor_id=None)

    def find(self, provider_code: str, provider_payment_id: str) -> PaymentTransactionModel | None:
        return self.repo.find_by_provider(provider_code.strip().upper(), provider_payment_id)

    def mark_paid_manually(self, tenant_id: int, order_id: int, actor_id: int) -> bool:
        order = self.orders.get_order(order_id)
        if order is None or order.tenant_id != tenant_id:
            raise NotFound("Order not found", code="ORDER_NOT_FOUND")

        txs = self.repo.list_for_order(order_id)
        #PAID liczy sie tylko jesli oznaczyl ja wlasciciel, nie webhook providera
        offline = [
            t
            for t in txs
            if t.status == PaymentStatus.OFFLINE_PENDING.value
            or (t.status == PaymentStatus.PAID.value and t.updated_by is not None)
        ]
        if not offline:
            raise IllegalPaymentTransition("Order has no offline payment awaiting confirmation")

        #pierwsza oczekujaca, albo juz oplacona recznie (powtorka = no-op)
        pending = next((t for t in offline if t.status == PaymentStatus.OFFLINE_PENDING.value), offline[0])
        applied = self._transition(pending, PaymentStatus.PAID, MANUAL_TRANSITIONS, actor_id)
        if applied:
            logger.info(f"Order {order_id} marked paid manually by {actor_id}")
        return applied

    def mark_refunded(self, tenant_id: int, transaction_id: int, actor_id: int) -> bool:
        tx = self.repo.get(transaction_id)
        if tx is None:
            raise NotFound("Payment transaction not found", code="TRANSACTION_NOT_FOUND")
        order = self.orders.get_order(tx.order_id)
        if order is None or order.tenant_id != tenant_id:
            raise NotFound("Payment transaction not found", code="TRANSACTION_NOT_FOUND")

        return self._transition(tx, PaymentStatus.REFUNDED, MANUAL_TRANSITIONS, actor_id)

    def sum_paid(self, order_id: int) -> Decimal:
        return money(self.repo.sum_paid(order_id))

    def transactions(self, order_id: int) -> list[PaymentTransactionModel]:
        return self.repo.list_for_order(order_id)

    def summary(self, order_id: int, order_total: Decimal) -> dict:
        total = money(order_total)
        paid = self.sum_paid(order_id)
        remaining = max(total - paid, ZERO)

        if total <= 0:
            state, fully_paid, remaining = OrderPaymentState.PAID, True, ZERO
        elif paid <= 0:
            state, fully_paid = OrderPaymentState.UNPAID, False
        elif paid >= total:
            state, fully_paid = OrderPaymentState.PAID, True
        else:
            state, fully_paid = OrderPaymentState.PARTIALLY_PAID, False

        return {
            "order_id": order_id,
            "order_total": total,
            "paid_amount": paid,
            "remaining_amount": remaining,
            "fully_paid": fully_paid,
            "payment_state": state.value,
        }
