"""
Order commit transaction.

Converts a cart, or a single buy-now line, into a persisted order:

    Started -> ItemsValidated -> OrderRowCreated -> ItemsCommitted
            -> TotalsFinalized -> CartCleared -> Committed

Any exception on the way rolls the whole transaction back (order row, order
items, stock decrements, sold_qty increments, cart deletion) and is re-raised
unchanged for the API layer to map.
"""
import secrets
import string
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, exists, select, update
from sqlalchemy.orm import Session

from marketplace_checkout.core.config import settings
from marketplace_checkout.core.exceptions import (
    CartEmptyError,
    InvalidAddressError,
    InvalidVariantError,
    OrderRefUnavailableError,
)
from marketplace_checkout.core.logging import get_logger
from marketplace_checkout.enums.order_status import OrderStatus
from marketplace_checkout.models.cart import CartItem
from marketplace_checkout.models.customer import CustomerAddress
from marketplace_checkout.models.order import Order, OrderItem
from marketplace_checkout.models.product import ProductVariant
from marketplace_checkout.services import ledger_service
from marketplace_checkout.services.pricing_service.resolve_price import (
    find_active_flash_item,
    check_flash_cap,
    line_total,
)

logger = get_logger(__name__)

_REF_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_ref(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    suffix = "".join(secrets.choice(_REF_ALPHABET) for _ in range(6))
    return f"ORD-{now:%Y%m%d}-{suffix}"


def _allocate_order_ref(db: Session, now: datetime) -> str:
    # the UNIQUE constraint on orders.order_ref backs this check
    attempts = settings.ORDER_REF_MAX_ATTEMPTS
    for _ in range(attempts):
        ref = generate_order_ref(now)
        taken = db.execute(select(exists().where(Order.order_ref == ref))).scalar()
        if not taken:
            return ref
        logger.info("order_ref %s already taken, regenerating", ref)
    raise OrderRefUnavailableError(attempts)


def _validate_address(db: Session, user_id: int, address_id: int) -> CustomerAddress:
    address = (
        db.query(CustomerAddress)
        .filter(
            CustomerAddress.address_id == address_id,
            CustomerAddress.user_id == user_id,
        )
        .first()
    )
    if not address:
        raise InvalidAddressError(address_id)
    return address


def _create_order_row(
    db: Session,
    user_id: int,
    address_id: int,
    company_id: Optional[int],
    now: datetime,
) -> Order:
    order = Order(
        order_ref=_allocate_order_ref(db, now),
        user_id=user_id,
        company_id=company_id,
        address_id=address_id,
        total_amount=Decimal("0.00"),
        status=OrderStatus.pending.value,
        created_at=now,
    )
    db.add(order)
    db.flush()
    return order


def _commit_line(
    db: Session,
    order: Order,
    product_id: int,
    variant_id: int,
    quantity: int,
    now: datetime,
) -> Decimal:
    """
    Commit one order line and return its total (quantity x resolved price).
    """
    variant = ledger_service.lock_variant(db, variant_id)
    if variant is None:
        raise InvalidVariantError(product_id, variant_id)

    flash_item = find_active_flash_item(db, variant_id, now=now, lock=True)

    ledger_service.ensure_stock(variant, quantity)
    if flash_item is not None:
        check_flash_cap(flash_item, quantity)
        unit_price = Decimal(flash_item.offer_price)
    else:
        unit_price = Decimal(variant.sale_price)

    db.add(
        OrderItem(
            order_id=order.order_id,
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            price=unit_price,
            flash_sale_item_id=flash_item.id if flash_item is not None else None,
        )
    )
    db.flush()

    ledger_service.decrement_stock(db, variant_id, quantity)
    if flash_item is not None:
        ledger_service.increment_sold_qty(db, flash_item, quantity)

    return line_total(unit_price, quantity)


def _finalize_total(db: Session, order: Order, total: Decimal) -> None:
    db.execute(
        update(Order)
        .where(Order.order_id == order.order_id)
        .values(total_amount=total)
        .execution_options(synchronize_session=False)
    )


# ---------- CART CHECKOUT ----------

def checkout_cart(
    db: Session,
    user_id: int,
    address_id: int,
    company_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    now = now or datetime.utcnow()
    try:
        # variant rows are locked in variant_id order so concurrent carts
        # sharing variants acquire locks in the same sequence
        cart_rows = db.execute(
            select(
                CartItem.product_id,
                CartItem.variant_id,
                CartItem.quantity,
                ProductVariant.product_id.label("variant_product_id"),
            )
            .join(ProductVariant, CartItem.variant_id == ProductVariant.variant_id)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.variant_id.asc(), CartItem.cart_item_id.asc())
            .with_for_update()
        ).all()

        if not cart_rows:
            raise CartEmptyError(user_id)

        for row in cart_rows:
            if row.variant_product_id != row.product_id:
                raise InvalidVariantError(row.product_id, row.variant_id)
            ledger_service.ensure_positive_quantity(row.variant_id, row.quantity)

        _validate_address(db, user_id, address_id)
        logger.debug("user %s: %s cart lines validated", user_id, len(cart_rows))

        order = _create_order_row(db, user_id, address_id, company_id, now)
        logger.debug("order %s (%s) created for user %s", order.order_id, order.order_ref, user_id)

        total = Decimal("0.00")
        for row in cart_rows:
            total += _commit_line(db, order, row.product_id, row.variant_id, row.quantity, now)

        _finalize_total(db, order, total)

        db.execute(delete(CartItem).where(CartItem.user_id == user_id))

        order_id = order.order_id
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning("Cart checkout aborted for user %s: %s", user_id, e)
        raise

    logger.info("Order %s committed from cart of user %s (total=%s)", order_id, user_id, total)
    return order_id


# ---------- BUY NOW ----------

def buy_now(
    db: Session,
    user_id: int,
    product_id: int,
    variant_id: int,
    quantity: int,
    address_id: int,
    company_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    ledger_service.ensure_positive_quantity(variant_id, quantity)

    now = now or datetime.utcnow()
    try:
        variant = ledger_service.lock_variant(db, variant_id, product_id=product_id)
        if variant is None:
            raise InvalidVariantError(product_id, variant_id)
        ledger_service.ensure_stock(variant, quantity)

        _validate_address(db, user_id, address_id)

        order = _create_order_row(db, user_id, address_id, company_id, now)

        total = _commit_line(db, order, product_id, variant_id, quantity, now)

        _finalize_total(db, order, total)

        order_id = order.order_id
        db.commit()
    except Exception as e:
        db.rollback()
        logger.warning("Buy-now aborted for user %s, variant %s: %s", user_id, variant_id, e)
        raise

    logger.info("Order %s committed via buy-now for user %s (total=%s)", order_id, user_id, total)
    return order_id
