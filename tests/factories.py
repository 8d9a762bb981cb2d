from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import text

from marketplace_checkout.models.cart import CartItem
from marketplace_checkout.models.customer import Customer, CustomerAddress
from marketplace_checkout.models.flash_sale import FlashSale, FlashSaleItem
from marketplace_checkout.models.product import Product, ProductImage, ProductVariant


def create_customer(db, name="Asha", is_active=True):
    customer = Customer(name=name, email=f"{name.lower()}@example.com", is_active=is_active)
    db.add(customer)
    db.flush()

    address = CustomerAddress(
        user_id=customer.user_id,
        address_type="home",
        address1="12 MG Road",
        address2="Flat 4B",
        city="Bengaluru",
        state="KA",
        country="India",
        zipcode="560001",
        landmark="Near metro",
    )
    db.add(address)
    db.commit()
    db.refresh(customer)
    db.refresh(address)
    return customer, address


def create_variant(
    db,
    sale_price="100.00",
    stock=10,
    mrp=None,
    reward_percent="0",
    name="Cotton Kurta",
    image_url=None,
):
    product = Product(vendor_id=1, product_name=name)
    db.add(product)
    db.flush()

    if image_url:
        db.add(ProductImage(product_id=product.product_id, image_url=image_url, sort_order=0))

    variant = ProductVariant(
        product_id=product.product_id,
        mrp=Decimal(mrp or sale_price),
        sale_price=Decimal(sale_price),
        stock=stock,
        reward_redemption_limit=Decimal(reward_percent),
    )
    db.add(variant)
    db.commit()
    db.refresh(variant)
    return variant


def create_flash_item(
    db,
    variant,
    offer_price="80.00",
    max_qty=None,
    sold_qty=0,
    status="active",
    starts_in=timedelta(hours=-1),
    lasts=timedelta(hours=2),
):
    now = datetime.utcnow()
    sale = FlashSale(
        title="Weekend Flash",
        start_at=now + starts_in,
        end_at=now + starts_in + lasts,
        status=status,
    )
    db.add(sale)
    db.flush()

    item = FlashSaleItem(
        flash_sale_id=sale.flash_sale_id,
        variant_id=variant.variant_id,
        offer_price=Decimal(offer_price),
        max_qty=max_qty,
        sold_qty=sold_qty,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def add_to_cart(db, customer, variant, quantity):
    row = CartItem(
        user_id=customer.user_id,
        product_id=variant.product_id,
        variant_id=variant.variant_id,
        quantity=quantity,
    )
    db.add(row)
    db.commit()
    return row


def add_unchecked_cart_row(db, customer, variant, quantity, product_id=None):
    """
    Cart row written past the table's CHECK constraints, as rows created
    before the constraints existed would be.
    """
    db.execute(text("PRAGMA ignore_check_constraints = ON"))
    try:
        row = CartItem(
            user_id=customer.user_id,
            product_id=product_id or variant.product_id,
            variant_id=variant.variant_id,
            quantity=quantity,
        )
        db.add(row)
        db.commit()
    finally:
        db.execute(text("PRAGMA ignore_check_constraints = OFF"))
        db.commit()
    return row
