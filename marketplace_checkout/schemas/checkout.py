from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------- Order placement ----------

class CartCheckoutRequest(BaseModel):
    address_id: int = Field(gt=0)
    company_id: Optional[int] = None


class BuyNowRequest(BaseModel):
    product_id: int = Field(gt=0)
    variant_id: int = Field(gt=0)
    quantity: int = Field(default=1, gt=0)
    address_id: int = Field(gt=0)
    company_id: Optional[int] = None


class OrderPlacedResponse(BaseModel):
    success: bool = True
    message: str = "Order placed successfully"
    order_id: int
    order_ref: str


# ---------- Checkout preview ----------

class CheckoutItem(BaseModel):
    cart_item_id: Optional[int] = None
    product_id: int
    variant_id: int
    title: str
    image: Optional[str] = None
    mrp: Decimal
    price: Decimal
    quantity: int
    per_unit_discount: Decimal
    item_total: Decimal
    points: Decimal  # reward discount on this line
    final_item_total: Decimal
    stock: int
    flash_sale_applied: bool = False


class CheckoutSummary(BaseModel):
    mode: str = "cart"
    items: List[CheckoutItem]
    total_amount: Decimal
    total_discount: Decimal
    payable_amount: Decimal


class BuyNowSummary(BaseModel):
    mode: str = "buy_now"
    item: CheckoutItem
    total_amount: Decimal
    total_discount: Decimal
    payable_amount: Decimal
