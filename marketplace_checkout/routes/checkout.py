from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from marketplace_checkout.database.connection import get_db
from marketplace_checkout.dependencies.auth import require_auth
from marketplace_checkout.models.customer import Customer
from marketplace_checkout.models.order import Order
from marketplace_checkout.schemas.checkout import (
    BuyNowRequest,
    BuyNowSummary,
    CartCheckoutRequest,
    CheckoutSummary,
    OrderPlacedResponse,
)
from marketplace_checkout.schemas.receipt import OrderReceipt
from marketplace_checkout.services.checkout_preview import get_buy_now_checkout, get_checkout_cart
from marketplace_checkout.services.checkout_service import buy_now, checkout_cart
from marketplace_checkout.services.notification_service import log_customer_notification, log_order_placed
from marketplace_checkout.services.receipt_service import get_order_receipt

router = APIRouter(prefix="/checkout", tags=["Checkout"])


def _placed(
    db: Session,
    order_id: int,
    user: Customer,
    source: str,
    request: Request,
    background_tasks: BackgroundTasks,
) -> OrderPlacedResponse:
    order_ref = db.get(Order, order_id).order_ref

    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics["orders_placed"] = metrics.get("orders_placed", 0) + 1

    background_tasks.add_task(log_order_placed, order_id, order_ref, source)
    background_tasks.add_task(log_customer_notification, user.user_id, order_ref)
    return OrderPlacedResponse(order_id=order_id, order_ref=order_ref)


# ---------- PREVIEW ----------

@router.get("/get-cart", response_model=CheckoutSummary)
def get_cart_checkout_route(
    user: Customer = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return get_checkout_cart(db, user.user_id)


@router.get("/get-buy-now", response_model=BuyNowSummary, dependencies=[Depends(require_auth)])
def get_buy_now_checkout_route(
    product_id: int,
    variant_id: int,
    qty: int = Query(default=1, gt=0),
    db: Session = Depends(get_db),
):
    return get_buy_now_checkout(db, product_id, variant_id, qty)


# ---------- PLACE ORDER ----------

@router.post("/cart", response_model=OrderPlacedResponse)
def checkout_cart_route(
    body: CartCheckoutRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user: Customer = Depends(require_auth),
    db: Session = Depends(get_db),
):
    order_id = checkout_cart(
        db,
        user_id=user.user_id,
        address_id=body.address_id,
        company_id=body.company_id,
    )
    return _placed(db, order_id, user, "cart", request, background_tasks)


@router.post("/buy-now", response_model=OrderPlacedResponse)
def buy_now_route(
    body: BuyNowRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    user: Customer = Depends(require_auth),
    db: Session = Depends(get_db),
):
    order_id = buy_now(
        db,
        user_id=user.user_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        quantity=body.quantity,
        address_id=body.address_id,
        company_id=body.company_id,
    )
    return _placed(db, order_id, user, "buy_now", request, background_tasks)


# ---------- RECEIPT ----------

@router.get("/order-receipt/{order_id}", response_model=OrderReceipt)
def order_receipt_route(
    order_id: int,
    user: Customer = Depends(require_auth),
    db: Session = Depends(get_db),
):
    return get_order_receipt(db, user.user_id, order_id)
