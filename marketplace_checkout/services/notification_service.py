from marketplace_checkout.core.logging import get_logger

logger = get_logger(__name__)


def log_order_placed(order_id: int, order_ref: str, source: str) -> None:
    logger.info("order %s (%s) placed via %s", order_id, order_ref, source)


def log_customer_notification(user_id: int, order_ref: str) -> None:
    # delivery channel (WhatsApp / SMS / email) lives outside this service
    logger.info("customer notification: order %s confirmed for user %s", order_ref, user_id)
