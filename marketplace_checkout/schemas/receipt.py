from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class ReceiptAddress(BaseModel):
    type: Optional[str] = None
    line1: str
    line2: Optional[str] = None
    city: str
    state: Optional[str] = None
    country: Optional[str] = None
    zipcode: str
    landmark: Optional[str] = None


class ReceiptItem(BaseModel):
    product_id: int
    variant_id: int
    product_name: str
    image: Optional[str] = None
    quantity: int
    price: Decimal
    item_total: Decimal


class ReceiptBill(BaseModel):
    item_total: Decimal
    mrp_total: Decimal
    bag_discount: Decimal
    reward_discount: Decimal
    delivery_fee: Decimal
    order_total: Decimal
    payable_amount: Decimal


class OrderReceipt(BaseModel):
    order_id: int
    order_ref: str
    order_date: datetime
    status: str
    username: str
    delivery_date: date
    address: Optional[ReceiptAddress] = None
    items: List[ReceiptItem]
    bill: ReceiptBill
    rewards_earned: int
