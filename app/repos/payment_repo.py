# app/repos/payment_repo.py
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from app.data.models.payment import (
    PaymentMethodModel,
    PaymentMethodConfigModel,
    PaymentTransactionModel,
)


class PaymentConfigRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_method(self, code: str) -> PaymentMethodModel | None:
        return self.db.execute(
            select(PaymentMethodModel).where(PaymentMethodModel.code == code)
        ).scalar_one_or_none()

    def add_method(self, method: PaymentMethodModel) -> PaymentMethodModel:
        self.db.add(method)
        self.db.flush()
        return method

    def get_config(self, tenant_id: int, code: str) -> PaymentMethodConfigModel | None:
        return self.db.execute(
            select(PaymentMethodConfigModel)
            .join(PaymentMethodModel, PaymentMethodConfigModel.payment_method_id == PaymentMethodModel.id)
            .where(
                PaymentMethodConfigModel.tenant_id == tenant_id,
                PaymentMethodModel.code == code,
            )
        ).scalar_one_or_none()

    def enabled_configs(self, tenant_id: int) -> list[PaymentMethodConfigModel]:
        return list(
            self.db.execute(
                select(PaymentMethodConfigModel)
                .where(
                    PaymentMethodConfigModel.tenant_id == tenant_id,
                    PaymentMethodConfigModel.enabled.is_(True),
                )
                .order_by(PaymentMethodConfigModel.id)
            ).scalars()
        )

    def save(self, cfg: PaymentMethodConfigModel) -> PaymentMethodConfigModel:
        self.db.add(cfg)
        self.db.commit()
        self.db.refresh(cfg)
        return cfg


class PaymentTransactionRepo:
    def __init__(self, db: Session):
        self.db = db

    def add(self, tx: PaymentTransactionModel) -> PaymentTransactionModel:
        self.db.add(tx)
        self.db.flush()
        return tx

    def get(self, tx_id: int) -> PaymentTransactionModel | None:
        return self.db.get(PaymentTransactionModel, tx_id)

    def find_by_provider(self, provider_code: str, provider_payment_id: str) -> PaymentTransactionModel | None:
        return self.db.execute(
            select(PaymentTransactionModel).where(
                PaymentTransactionModel.provider_code == provider_code,
                PaymentTransactionModel.provider_payment_id == provider_payment_id,
            )
        ).scalar_one_or_none()

    def list_for_order(self, order_id: int) -> list[PaymentTransactionModel]:
        return list(
            self.db.execute(
                select(PaymentTransactionModel)
                .where(PaymentTransactionModel.order_id == order_id)
                .order_by(PaymentTransactionModel.id)
            ).scalars()
        )

    def compare_and_set_status(self, tx_id: int, expected: str, new_status: str, actor_id: int | None = None) -> bool:
        """UPDATE ... SET status = new WHERE id = ? AND status = expected."""
        values = {"status": new_status}
        if actor_id is not None:
            values["updated_by"] = actor_id
        res = self.db.execute(
            update(PaymentTransactionModel)
            .where(
                PaymentTransactionModel.id == tx_id,
                PaymentTransactionModel.status == expected,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    def sum_paid(self, order_id: int):
        return self.db.execute(
            select(func.coalesce(func.sum(PaymentTransactionModel.amount), 0)).where(
                PaymentTransactionModel.order_id == order_id,
                PaymentTransactionModel.status == "PAID",
            )
        ).scalar_one()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
