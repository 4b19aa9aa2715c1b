# app/repos/cart_repo.py
from sqlalchemy import select, update, delete
from sqlalchemy.orm import Session

from app.data.models.cart import CartModel
from app.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart(self, tenant_id: int, buyer_id: int) -> CartModel | None:
        return self.db.execute(
            select(CartModel).where(
                CartModel.tenant_id == tenant_id,
                CartModel.buyer_id == buyer_id,
                CartModel.status == "ACTIVE",
            )
        ).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, cart_item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.id == cart_item_id,
            )
        ).scalar_one_or_none()

    def get_cart_item_by_item(self, cart_id: int, item_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.item_id == item_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> None:
        self.db.add(item)
        self.db.flush()

    def delete_cart_item(self, cart_id: int, cart_item_id: int) -> int:
        res = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.id == cart_item_id,
            )
        )
        return res.rowcount

    def delete_all_items(self, cart_id: int) -> int:
        res = self.db.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))
        return res.rowcount

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        """
        Optimistic locking: update set version = n+1 where id = ? and version = n.
        Zwraca liczbe zmienionych wierszy (0 = ktos nas wyprzedzil).
        """
        res = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
