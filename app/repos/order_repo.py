# app/repos/order_repo.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.data.models.order import OrderModel, OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        #bez commita - checkout commituje calosc jednym ruchem
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel).where(OrderItemModel.order_id == order_id).order_by(OrderItemModel.id)
            ).scalars()
        )
