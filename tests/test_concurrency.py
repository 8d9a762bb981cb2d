from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

from sqlalchemy import func, select

from marketplace_checkout.core.exceptions import FlashOutOfStockError, OutOfStockError
from marketplace_checkout.models.flash_sale import FlashSaleItem
from marketplace_checkout.models.order import Order, OrderItem
from marketplace_checkout.models.product import ProductVariant
from marketplace_checkout.services.checkout_service import buy_now, checkout_cart

from factories import add_to_cart, create_customer, create_flash_item, create_variant


def _race(session_factory, calls):
    """
    Run each call on its own session and thread, released together.
    Returns a list of (order_id or None, exception or None).
    """
    barrier = Barrier(len(calls))

    def run(call):
        session = session_factory()
        try:
            barrier.wait()
            return call(session), None
        except (OutOfStockError, FlashOutOfStockError) as e:
            return None, e
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        return list(pool.map(run, calls))


def test_concurrent_buy_now_respects_flash_cap_of_one(file_session_factory):
    setup = file_session_factory()
    first, first_address = create_customer(setup, name="First")
    second, second_address = create_customer(setup, name="Second")
    variant = create_variant(setup, sale_price="100.00", stock=10)
    flash = create_flash_item(setup, variant, offer_price="80.00", max_qty=1, sold_qty=0)
    variant_id = variant.variant_id
    args = (variant.product_id, variant_id, 1)
    buyers = [(first.user_id, first_address.address_id), (second.user_id, second_address.address_id)]
    calls = [
        lambda s, user_id=user_id, address_id=address_id: buy_now(s, user_id, *args, address_id)
        for user_id, address_id in buyers
    ]
    flash_id = flash.id
    setup.close()

    results = _race(file_session_factory, calls)

    placed = [order_id for order_id, _ in results if order_id is not None]
    failures = [e for _, e in results if e is not None]
    assert len(placed) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], FlashOutOfStockError)

    check = file_session_factory()
    try:
        assert check.get(FlashSaleItem, flash_id).sold_qty == 1
        assert check.get(ProductVariant, variant_id).stock == 9
    finally:
        check.close()


def test_concurrent_checkouts_never_oversell(file_session_factory):
    setup = file_session_factory()
    variant = create_variant(setup, sale_price="10.00", stock=5)
    variant_id = variant.variant_id
    calls = []
    for i in range(4):
        customer, address = create_customer(setup, name=f"buyer{i}")
        add_to_cart(setup, customer, variant, 2)
        calls.append(
            lambda s, user_id=customer.user_id, address_id=address.address_id: checkout_cart(s, user_id, address_id)
        )
    setup.close()

    results = _race(file_session_factory, calls)

    placed = [order_id for order_id, _ in results if order_id is not None]
    assert len(placed) == 2
    assert all(isinstance(e, OutOfStockError) for _, e in results if e is not None)

    check = file_session_factory()
    try:
        assert check.get(ProductVariant, variant_id).stock == 1
        assert check.execute(select(func.count()).select_from(Order)).scalar() == 2
        sold = check.execute(
            select(func.sum(OrderItem.quantity)).where(OrderItem.variant_id == variant_id)
        ).scalar()
        assert sold == 4
    finally:
        check.close()
