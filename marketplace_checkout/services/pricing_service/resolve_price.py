from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import NamedTuple, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_checkout.core.exceptions import FlashOutOfStockError
from marketplace_checkout.enums.flash_sale_status import FlashSaleStatus
from marketplace_checkout.models.flash_sale import FlashSale, FlashSaleItem
from marketplace_checkout.models.product import ProductVariant

WHOLE_UNIT = Decimal("1")
CENT = Decimal("0.01")


class PriceResolution(NamedTuple):
    unit_price: Decimal
    flash_item: Optional[FlashSaleItem]

    @property
    def flash_sale_applied(self) -> bool:
        return self.flash_item is not None


# ===================== FLASH SALE LOOKUP =====================


def find_active_flash_item(
    db: Session,
    variant_id: int,
    now: Optional[datetime] = None,
    lock: bool = False,
) -> Optional[FlashSaleItem]:
    """
    Return the flash sale row pricing this variant right now, or None.

    A row qualifies when its parent sale is active and `now` falls inside
    [start_at, end_at]. If several sales overlap, the cheapest offer wins.
    With lock=True the row is selected FOR UPDATE so the cap check and the
    sold_qty increment that follows cannot interleave with another order.
    """
    now = now or datetime.utcnow()

    stmt = (
        select(FlashSaleItem)
        .join(FlashSale, FlashSaleItem.flash_sale_id == FlashSale.flash_sale_id)
        .where(
            FlashSaleItem.variant_id == variant_id,
            FlashSale.status == FlashSaleStatus.active.value,
            FlashSale.start_at <= now,
            FlashSale.end_at >= now,
        )
        .order_by(FlashSaleItem.offer_price.asc(), FlashSaleItem.id.asc())
        .limit(1)
    )
    if lock:
        stmt = stmt.with_for_update(of=FlashSaleItem).execution_options(populate_existing=True)

    return db.execute(stmt).scalar_one_or_none()


def check_flash_cap(flash_item: FlashSaleItem, quantity: int) -> None:
    if flash_item.max_qty is None:
        return

    sold = int(flash_item.sold_qty or 0)
    if sold + quantity > int(flash_item.max_qty):
        raise FlashOutOfStockError(
            variant_id=flash_item.variant_id,
            flash_sale_item_id=flash_item.id,
            requested=quantity,
            remaining=max(int(flash_item.max_qty) - sold, 0),
        )


def resolve_unit_price(
    db: Session,
    variant: ProductVariant,
    quantity: int,
    now: Optional[datetime] = None,
    lock: bool = False,
) -> PriceResolution:
    """
    Flash offer price if a qualifying flash row admits `quantity`,
    otherwise the variant's standing sale price.

    Does not touch sold_qty; the commit transaction owns that write.
    """
    flash_item = find_active_flash_item(db, variant.variant_id, now=now, lock=lock)
    if flash_item is None:
        return PriceResolution(Decimal(variant.sale_price), None)

    check_flash_cap(flash_item, quantity)
    return PriceResolution(Decimal(flash_item.offer_price), flash_item)


# ===================== MONEY HELPERS =====================


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return (Decimal(unit_price) * quantity).quantize(CENT)


def reward_discount(item_total: Decimal, reward_percent) -> Decimal:
    """
    item_total=1999, reward_percent=10 -> 200  (rounded half-up to whole units)
    """
    percent = Decimal(reward_percent or 0)
    return (Decimal(item_total) * percent / 100).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
