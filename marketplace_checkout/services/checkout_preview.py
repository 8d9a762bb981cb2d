from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from marketplace_checkout.core.exceptions import CartEmptyError, InvalidVariantError
from marketplace_checkout.models.cart import CartItem
from marketplace_checkout.models.product import Product, ProductImage, ProductVariant
from marketplace_checkout.schemas.checkout import BuyNowSummary, CheckoutItem, CheckoutSummary
from marketplace_checkout.services.ledger_service import ensure_positive_quantity, ensure_stock
from marketplace_checkout.services.pricing_service.resolve_price import (
    line_total,
    resolve_unit_price,
    reward_discount,
)


def first_image_subquery():
    return (
        select(ProductImage.image_url)
        .where(ProductImage.product_id == Product.product_id)
        .order_by(ProductImage.sort_order.asc(), ProductImage.image_id.asc())
        .limit(1)
        .correlate(Product)
        .scalar_subquery()
    )


def _build_item(
    db: Session,
    product: Product,
    variant: ProductVariant,
    quantity: int,
    image: Optional[str],
    now: datetime,
    cart_item_id: Optional[int] = None,
) -> CheckoutItem:
    # advisory only: stock and flash allocation are checked again at commit
    ensure_positive_quantity(variant.variant_id, quantity)
    ensure_stock(variant, quantity)
    pricing = resolve_unit_price(db, variant, quantity, now=now)

    item_total = line_total(pricing.unit_price, quantity)
    points = reward_discount(item_total, variant.reward_redemption_limit)
    mrp = Decimal(variant.mrp)

    return CheckoutItem(
        cart_item_id=cart_item_id,
        product_id=product.product_id,
        variant_id=variant.variant_id,
        title=product.product_name,
        image=image,
        mrp=mrp,
        price=pricing.unit_price,
        quantity=quantity,
        per_unit_discount=mrp - pricing.unit_price,
        item_total=item_total,
        points=points,
        final_item_total=item_total - points,
        stock=int(variant.stock),
        flash_sale_applied=pricing.flash_sale_applied,
    )


# ---------- CART PREVIEW ----------

def get_checkout_cart(
    db: Session,
    user_id: int,
    now: Optional[datetime] = None,
) -> CheckoutSummary:
    now = now or datetime.utcnow()

    rows = db.execute(
        select(CartItem, Product, ProductVariant, first_image_subquery().label("image"))
        .join(Product, CartItem.product_id == Product.product_id)
        .join(ProductVariant, CartItem.variant_id == ProductVariant.variant_id)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.cart_item_id.asc())
    ).all()

    if not rows:
        raise CartEmptyError(user_id)

    for row in rows:
        if row.ProductVariant.product_id != row.CartItem.product_id:
            raise InvalidVariantError(row.CartItem.product_id, row.CartItem.variant_id)

    items: List[CheckoutItem] = [
        _build_item(
            db,
            product=row.Product,
            variant=row.ProductVariant,
            quantity=row.CartItem.quantity,
            image=row.image,
            now=now,
            cart_item_id=row.CartItem.cart_item_id,
        )
        for row in rows
    ]

    total_amount = sum((i.item_total for i in items), Decimal("0.00"))
    total_discount = sum((i.points for i in items), Decimal("0"))

    return CheckoutSummary(
        items=items,
        total_amount=total_amount,
        total_discount=total_discount,
        payable_amount=total_amount - total_discount,
    )


# ---------- BUY NOW PREVIEW ----------

def get_buy_now_checkout(
    db: Session,
    product_id: int,
    variant_id: int,
    quantity: int,
    now: Optional[datetime] = None,
) -> BuyNowSummary:
    now = now or datetime.utcnow()

    row = db.execute(
        select(Product, ProductVariant, first_image_subquery().label("image"))
        .join(ProductVariant, ProductVariant.product_id == Product.product_id)
        .where(
            ProductVariant.variant_id == variant_id,
            Product.product_id == product_id,
        )
    ).first()

    if not row:
        raise InvalidVariantError(product_id, variant_id)

    item = _build_item(db, row.Product, row.ProductVariant, quantity, row.image, now)

    return BuyNowSummary(
        item=item,
        total_amount=item.item_total,
        total_discount=item.points,
        payable_amount=item.final_item_total,
    )
