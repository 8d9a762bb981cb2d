from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from marketplace_checkout.core.exceptions import FlashOutOfStockError, InvalidQuantityError, OutOfStockError
from marketplace_checkout.core.logging import get_logger
from marketplace_checkout.models.flash_sale import FlashSaleItem
from marketplace_checkout.models.product import ProductVariant

logger = get_logger(__name__)


# ---------- STOCK LEDGER ----------

def lock_variant(
    db: Session,
    variant_id: int,
    product_id: Optional[int] = None,
) -> Optional[ProductVariant]:
    """
    Read the variant row FOR UPDATE inside the caller's transaction.
    populate_existing forces a fresh read even if the row is already in the
    identity map, so the stock checked is the stock that will be decremented.
    """
    stmt = select(ProductVariant).where(ProductVariant.variant_id == variant_id)
    if product_id is not None:
        stmt = stmt.where(ProductVariant.product_id == product_id)
    stmt = stmt.with_for_update().execution_options(populate_existing=True)

    return db.execute(stmt).scalar_one_or_none()


def ensure_positive_quantity(variant_id: int, quantity: int) -> None:
    if quantity is None or quantity <= 0:
        raise InvalidQuantityError(variant_id, quantity)


def ensure_stock(variant: ProductVariant, quantity: int) -> None:
    available = int(variant.stock or 0)
    if quantity > available:
        raise OutOfStockError(
            variant_id=variant.variant_id,
            requested=quantity,
            available=available,
        )


def decrement_stock(db: Session, variant_id: int, quantity: int) -> None:
    res = db.execute(
        update(ProductVariant)
        .where(
            ProductVariant.variant_id == variant_id,
            ProductVariant.stock >= quantity,
        )
        .values(stock=ProductVariant.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        fresh = db.execute(
            select(ProductVariant.stock).where(ProductVariant.variant_id == variant_id)
        ).scalar_one_or_none()
        logger.warning(
            "Stock decrement rejected for variant %s (requested=%s, remaining=%s)",
            variant_id, quantity, fresh,
        )
        raise OutOfStockError(variant_id=variant_id, requested=quantity, available=int(fresh or 0))


# ---------- FLASH SALE CAP LEDGER ----------

def increment_sold_qty(db: Session, flash_item: FlashSaleItem, quantity: int) -> None:
    """
    sold_qty += quantity, only while it stays within max_qty.
    Called from the order commit transaction, after the flash row was locked.
    """
    res = db.execute(
        update(FlashSaleItem)
        .where(
            FlashSaleItem.id == flash_item.id,
            or_(
                FlashSaleItem.max_qty.is_(None),
                FlashSaleItem.sold_qty + quantity <= FlashSaleItem.max_qty,
            ),
        )
        .values(sold_qty=FlashSaleItem.sold_qty + quantity)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        row = db.execute(
            select(FlashSaleItem.sold_qty, FlashSaleItem.max_qty).where(FlashSaleItem.id == flash_item.id)
        ).first()
        remaining = max(int(row.max_qty or 0) - int(row.sold_qty or 0), 0) if row else 0
        logger.warning(
            "Flash allocation rejected for item %s (requested=%s, remaining=%s)",
            flash_item.id, quantity, remaining,
        )
        raise FlashOutOfStockError(
            variant_id=flash_item.variant_id,
            flash_sale_item_id=flash_item.id,
            requested=quantity,
            remaining=remaining,
        )
