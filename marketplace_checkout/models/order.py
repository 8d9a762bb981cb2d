from datetime import datetime
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from marketplace_checkout.database.connection import Base


class Order(Base):
    __tablename__ = "orders"

    order_id = Column(Integer, primary_key=True, index=True)
    order_ref = Column(String(32), unique=True, nullable=False, index=True)  # e.g. ORD-20250101-AB12CD
    user_id = Column(Integer, ForeignKey("customers.user_id"), nullable=False, index=True)
    company_id = Column(Integer, nullable=True)
    address_id = Column(Integer, ForeignKey("customer_addresses.address_id"), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String, default="pending", nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
    )
    address = relationship("CustomerAddress")
    customer = relationship("Customer")


class OrderItem(Base):
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("product_variants.variant_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    # unit price resolved at commit time; never recomputed
    price = Column(Numeric(12, 2), nullable=False)
    flash_sale_item_id = Column(Integer, ForeignKey("flash_sale_items.id"), nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    variant = relationship("ProductVariant")
