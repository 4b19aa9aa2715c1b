from sqlalchemy import Column, Integer, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    item_name = Column(String(255), nullable=True)

    quantity = Column(Integer, nullable=False)
    #snapshot ceny i wagi z momentu dodania do koszyka
    unit_price = Column(Numeric(12, 2), nullable=False)
    weight_kg = Column(Numeric(10, 3), nullable=True)
    currency_id = Column(Integer, nullable=True)

    cart = relationship("CartModel", back_populates="items")

    __table_args__ = (UniqueConstraint("cart_id", "item_id", name="u_cart_item"),)
