from decimal import Decimal

import pytest
from sqlalchemy import func, select

from marketplace_checkout.core.exceptions import (
    CartEmptyError,
    FlashOutOfStockError,
    InvalidQuantityError,
    InvalidVariantError,
    OutOfStockError,
)
from marketplace_checkout.models.flash_sale import FlashSaleItem
from marketplace_checkout.models.order import Order
from marketplace_checkout.models.product import ProductVariant
from marketplace_checkout.services.checkout_preview import get_buy_now_checkout, get_checkout_cart

from factories import add_to_cart, add_unchecked_cart_row, create_customer, create_flash_item, create_variant


def test_cart_preview_totals(db):
    customer, _ = create_customer(db)
    shirt = create_variant(
        db, sale_price="1999.00", mrp="2499.00", stock=5, reward_percent="10",
        name="Linen Shirt", image_url="https://cdn.example.com/shirt.jpg",
    )
    socks = create_variant(db, sale_price="150.00", stock=20, name="Socks")
    add_to_cart(db, customer, shirt, 1)
    add_to_cart(db, customer, socks, 2)

    summary = get_checkout_cart(db, customer.user_id)

    assert summary.mode == "cart"
    first, second = summary.items
    assert first.title == "Linen Shirt"
    assert first.image == "https://cdn.example.com/shirt.jpg"
    assert first.per_unit_discount == Decimal("500.00")
    assert first.points == Decimal("200")
    assert first.final_item_total == Decimal("1799.00")
    assert second.image is None
    assert second.item_total == Decimal("300.00")
    assert second.points == Decimal("0")

    assert summary.total_amount == Decimal("2299.00")
    assert summary.total_discount == Decimal("200")
    assert summary.payable_amount == Decimal("2099.00")


def test_cart_preview_uses_flash_price(db):
    customer, _ = create_customer(db)
    variant = create_variant(db, sale_price="100.00", stock=10)
    create_flash_item(db, variant, offer_price="80.00", max_qty=5, sold_qty=0)
    add_to_cart(db, customer, variant, 2)

    item = get_checkout_cart(db, customer.user_id).items[0]

    assert item.flash_sale_applied is True
    assert item.price == Decimal("80.00")
    assert item.item_total == Decimal("160.00")


def test_preview_writes_nothing(db):
    customer, _ = create_customer(db)
    variant = create_variant(db, stock=10)
    flash = create_flash_item(db, variant, max_qty=5)
    add_to_cart(db, customer, variant, 3)

    get_checkout_cart(db, customer.user_id)
    get_buy_now_checkout(db, variant.product_id, variant.variant_id, 2)
    db.rollback()

    assert db.get(ProductVariant, variant.variant_id).stock == 10
    assert db.get(FlashSaleItem, flash.id).sold_qty == 0
    assert db.execute(select(func.count()).select_from(Order)).scalar() == 0


def test_cart_preview_empty(db):
    customer, _ = create_customer(db)

    with pytest.raises(CartEmptyError):
        get_checkout_cart(db, customer.user_id)


def test_cart_preview_out_of_stock(db):
    customer, _ = create_customer(db)
    variant = create_variant(db, stock=1)
    add_to_cart(db, customer, variant, 2)

    with pytest.raises(OutOfStockError):
        get_checkout_cart(db, customer.user_id)


def test_cart_preview_flash_cap_exceeded(db):
    customer, _ = create_customer(db)
    variant = create_variant(db, stock=10)
    create_flash_item(db, variant, max_qty=5, sold_qty=4)
    add_to_cart(db, customer, variant, 2)

    with pytest.raises(FlashOutOfStockError):
        get_checkout_cart(db, customer.user_id)


def test_buy_now_preview(db):
    variant = create_variant(db, sale_price="499.00", mrp="599.00", stock=4, reward_percent="5")

    summary = get_buy_now_checkout(db, variant.product_id, variant.variant_id, 2)

    assert summary.mode == "buy_now"
    assert summary.item.cart_item_id is None
    assert summary.total_amount == Decimal("998.00")
    assert summary.total_discount == Decimal("50")
    assert summary.payable_amount == Decimal("948.00")


def test_buy_now_preview_invalid_variant(db):
    variant = create_variant(db)

    with pytest.raises(InvalidVariantError):
        get_buy_now_checkout(db, variant.product_id + 1, variant.variant_id, 1)


def test_buy_now_preview_out_of_stock(db):
    variant = create_variant(db, stock=2)

    with pytest.raises(OutOfStockError):
        get_buy_now_checkout(db, variant.product_id, variant.variant_id, 3)


def test_cart_preview_rejects_non_positive_line(db):
    customer, _ = create_customer(db)
    variant = create_variant(db, stock=5)
    add_unchecked_cart_row(db, customer, variant, -2)

    with pytest.raises(InvalidQuantityError):
        get_checkout_cart(db, customer.user_id)


def test_cart_preview_rejects_mismatched_product(db):
    customer, _ = create_customer(db)
    variant = create_variant(db, name="kurta")
    other = create_variant(db, name="saree")
    add_unchecked_cart_row(db, customer, variant, 1, product_id=other.product_id)

    with pytest.raises(InvalidVariantError):
        get_checkout_cart(db, customer.user_id)


def test_buy_now_preview_rejects_non_positive_quantity(db):
    variant = create_variant(db, stock=5)

    with pytest.raises(InvalidQuantityError):
        get_buy_now_checkout(db, variant.product_id, variant.variant_id, 0)
