# app/repos/rule_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.models.tax_rule import TaxRuleModel
from app.data.models.shipping_method import ShippingMethodModel


class TaxRuleRepo:
    def __init__(self, db: Session):
        self.db = db

    def enabled_for_tenant(self, tenant_id: int) -> list[TaxRuleModel]:
        return list(
            self.db.execute(
                select(TaxRuleModel)
                .where(TaxRuleModel.tenant_id == tenant_id, TaxRuleModel.enabled.is_(True))
                .order_by(TaxRuleModel.id)
            ).scalars()
        )

    def list_by_tenant(self, tenant_id: int) -> list[TaxRuleModel]:
        return list(
            self.db.execute(
                select(TaxRuleModel).where(TaxRuleModel.tenant_id == tenant_id).order_by(TaxRuleModel.id)
            ).scalars()
        )

    def create(self, rule: TaxRuleModel) -> TaxRuleModel:
        self.db.add(rule)
        self.db.commit()
        self.db.refresh(rule)
        return rule


class ShippingMethodRepo:
    def __init__(self, db: Session):
        self.db = db

    def enabled_for_tenant(self, tenant_id: int) -> list[ShippingMethodModel]:
        return list(
            self.db.execute(
                select(ShippingMethodModel)
                .where(ShippingMethodModel.tenant_id == tenant_id, ShippingMethodModel.enabled.is_(True))
                .order_by(ShippingMethodModel.id)
            ).scalars()
        )

    def list_by_tenant(self, tenant_id: int) -> list[ShippingMethodModel]:
        return list(
            self.db.execute(
                select(ShippingMethodModel)
                .where(ShippingMethodModel.tenant_id == tenant_id)
                .order_by(ShippingMethodModel.id)
            ).scalars()
        )

    def create(self, method: ShippingMethodModel) -> ShippingMethodModel:
        self.db.add(method)
        self.db.commit()
        self.db.refresh(method)
        return method
