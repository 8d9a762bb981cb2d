from enum import Enum
from typing import Any, Dict, Optional


class CheckoutErrorCode(str, Enum):
    CART_EMPTY = "CART_EMPTY"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    FLASH_OUT_OF_STOCK = "FLASH_OUT_OF_STOCK"
    INVALID_VARIANT = "INVALID_VARIANT"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    ORDER_REF_UNAVAILABLE = "ORDER_REF_UNAVAILABLE"


class CheckoutError(Exception):
    """
    Base for every checkout failure. Carries the HTTP status the API layer
    answers with and the structured fields describing what went wrong.
    """

    code: CheckoutErrorCode

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class CartEmptyError(CheckoutError):
    code = CheckoutErrorCode.CART_EMPTY

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__("Cart is empty", status_code=400, details={"user_id": user_id})


class OutOfStockError(CheckoutError):
    code = CheckoutErrorCode.OUT_OF_STOCK

    def __init__(self, variant_id: int, requested: int, available: int):
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Variant {variant_id} is out of stock (requested={requested}, available={available})",
            status_code=409,
            details={"variant_id": variant_id, "requested": requested, "available": available},
        )


class FlashOutOfStockError(CheckoutError):
    code = CheckoutErrorCode.FLASH_OUT_OF_STOCK

    def __init__(self, variant_id: int, flash_sale_item_id: int, requested: int, remaining: int):
        self.variant_id = variant_id
        self.flash_sale_item_id = flash_sale_item_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Flash sale allocation exhausted for variant {variant_id} "
            f"(requested={requested}, remaining={remaining})",
            status_code=409,
            details={
                "variant_id": variant_id,
                "flash_sale_item_id": flash_sale_item_id,
                "requested": requested,
                "remaining": remaining,
            },
        )


class InvalidVariantError(CheckoutError):
    code = CheckoutErrorCode.INVALID_VARIANT

    def __init__(self, product_id: int, variant_id: int):
        self.product_id = product_id
        self.variant_id = variant_id
        super().__init__(
            f"Variant {variant_id} not found for product {product_id}",
            status_code=404,
            details={"product_id": product_id, "variant_id": variant_id},
        )


class OrderNotFoundError(CheckoutError):
    code = CheckoutErrorCode.ORDER_NOT_FOUND

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__("Order not found", status_code=404, details={"order_id": order_id})


class InvalidAddressError(CheckoutError):
    code = CheckoutErrorCode.INVALID_ADDRESS

    def __init__(self, address_id: int):
        self.address_id = address_id
        super().__init__("Invalid delivery address", status_code=400, details={"address_id": address_id})


class InvalidQuantityError(CheckoutError, ValueError):
    code = CheckoutErrorCode.INVALID_QUANTITY

    def __init__(self, variant_id: int, quantity: int):
        self.variant_id = variant_id
        self.quantity = quantity
        super().__init__(
            f"Quantity must be positive (variant={variant_id}, quantity={quantity})",
            status_code=400,
            details={"variant_id": variant_id, "quantity": quantity},
        )


class OrderRefUnavailableError(CheckoutError):
    code = CheckoutErrorCode.ORDER_REF_UNAVAILABLE

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            "Could not allocate a unique order reference",
            status_code=503,
            details={"attempts": attempts},
        )
