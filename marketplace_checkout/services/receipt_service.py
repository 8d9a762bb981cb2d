from datetime import timedelta
from decimal import ROUND_FLOOR, Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from marketplace_checkout.core.config import settings
from marketplace_checkout.core.exceptions import OrderNotFoundError
from marketplace_checkout.models.order import Order, OrderItem
from marketplace_checkout.models.product import Product, ProductVariant
from marketplace_checkout.schemas.receipt import (
    OrderReceipt,
    ReceiptAddress,
    ReceiptBill,
    ReceiptItem,
)
from marketplace_checkout.services.checkout_preview import first_image_subquery
from marketplace_checkout.services.pricing_service.resolve_price import line_total, reward_discount


def delivery_fee_for(item_total: Decimal) -> Decimal:
    threshold = Decimal(settings.FREE_DELIVERY_THRESHOLD)
    if threshold > 0 and item_total >= threshold:
        return Decimal("0.00")
    return Decimal(settings.DELIVERY_FEE)


def rewards_earned_for(order_total: Decimal) -> int:
    earned = Decimal(order_total) * Decimal(settings.REWARD_EARN_PERCENT) / 100
    return int(earned.to_integral_value(rounding=ROUND_FLOOR))


def get_order_receipt(db: Session, user_id: int, order_id: int) -> OrderReceipt:
    """
    Customer-facing receipt for a committed order.
    Orders belonging to someone else are reported as not found.
    """
    order = (
        db.query(Order)
        .options(joinedload(Order.address), joinedload(Order.customer))
        .filter(Order.order_id == order_id, Order.user_id == user_id)
        .first()
    )

    if not order:
        raise OrderNotFoundError(order_id)

    rows = db.execute(
        select(OrderItem, Product.product_name, ProductVariant.mrp, ProductVariant.reward_redemption_limit,
               first_image_subquery().label("image"))
        .join(Product, OrderItem.product_id == Product.product_id)
        .join(ProductVariant, OrderItem.variant_id == ProductVariant.variant_id)
        .where(OrderItem.order_id == order_id)
        .order_by(OrderItem.id.asc())
    ).all()

    items = []
    item_total = Decimal("0.00")
    mrp_total = Decimal("0.00")
    bag_discount = Decimal("0.00")
    reward_total = Decimal("0")

    for row in rows:
        oi = row.OrderItem
        price = Decimal(oi.price)
        total = line_total(price, oi.quantity)
        mrp_line = line_total(Decimal(row.mrp), oi.quantity)

        item_total += total
        mrp_total += mrp_line
        bag_discount += max(mrp_line - total, Decimal("0.00"))
        reward_total += reward_discount(total, row.reward_redemption_limit)

        items.append(
            ReceiptItem(
                product_id=oi.product_id,
                variant_id=oi.variant_id,
                product_name=row.product_name,
                image=row.image,
                quantity=oi.quantity,
                price=price,
                item_total=total,
            )
        )

    order_total = Decimal(order.total_amount)
    delivery_fee = delivery_fee_for(item_total)

    address = None
    if order.address is not None:
        a = order.address
        address = ReceiptAddress(
            type=a.address_type,
            line1=a.address1,
            line2=a.address2,
            city=a.city,
            state=a.state,
            country=a.country,
            zipcode=a.zipcode,
            landmark=a.landmark,
        )

    return OrderReceipt(
        order_id=order.order_id,
        order_ref=order.order_ref,
        order_date=order.created_at,
        status=order.status,
        username=order.customer.name if order.customer else "",
        delivery_date=(order.created_at + timedelta(days=settings.DELIVERY_ESTIMATE_DAYS)).date(),
        address=address,
        items=items,
        bill=ReceiptBill(
            item_total=item_total,
            mrp_total=mrp_total,
            bag_discount=bag_discount,
            reward_discount=reward_total,
            delivery_fee=delivery_fee,
            order_total=order_total,
            payable_amount=order_total + delivery_fee - reward_total,
        ),
        rewards_earned=rewards_earned_for(order_total),
    )
