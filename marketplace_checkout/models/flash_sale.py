from datetime import datetime
from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from marketplace_checkout.database.connection import Base


class FlashSale(Base):
    __tablename__ = "flash_sales"

    flash_sale_id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    status = Column(String, default="draft", index=True)  # draft / active / inactive / archived
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "FlashSaleItem",
        back_populates="flash_sale",
        cascade="all, delete-orphan",
    )


class FlashSaleItem(Base):
    __tablename__ = "flash_sale_items"
    __table_args__ = (
        CheckConstraint("sold_qty >= 0", name="ck_flash_sale_items_sold_qty_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    flash_sale_id = Column(
        Integer, ForeignKey("flash_sales.flash_sale_id"), nullable=False, index=True
    )
    variant_id = Column(
        Integer, ForeignKey("product_variants.variant_id"), nullable=False, index=True
    )
    offer_price = Column(Numeric(12, 2), nullable=False)
    max_qty = Column(Integer, nullable=True)  # NULL = uncapped
    sold_qty = Column(Integer, nullable=False, default=0)

    flash_sale = relationship("FlashSale", back_populates="items")
