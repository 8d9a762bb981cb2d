from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace_checkout.core.logging import get_logger
from marketplace_checkout.database.connection import get_db
from marketplace_checkout.dependencies.auth import require_admin
from marketplace_checkout.enums.flash_sale_status import FlashSaleStatus
from marketplace_checkout.models.flash_sale import FlashSale
from marketplace_checkout.models.order import Order
from marketplace_checkout.schemas.system import HealthCheckResponse, SystemMetricsResponse

router = APIRouter(tags=["System"])

logger = get_logger(__name__)


@router.get("/health", response_model=HealthCheckResponse)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Lightweight public health check.
    Returns ok + DB connectivity check (SELECT 1).
    """
    now = datetime.utcnow()
    start_time = getattr(request.app.state, "start_time", now)
    uptime_seconds = (now - start_time).total_seconds()

    db_ok = True
    extra = {}
    try:
        db.execute(select(1))
    except SQLAlchemyError as e:
        logger.error("health check: database unreachable: %s", e)
        db_ok = False
        extra["db_error"] = str(e)

    return HealthCheckResponse(
        status="ok" if db_ok else "degraded",
        now=now,
        uptime_seconds=uptime_seconds,
        db_ok=db_ok,
        extra=extra or None,
    )


@router.get("/metrics", response_model=SystemMetricsResponse, dependencies=[Depends(require_admin)])
def system_metrics(request: Request, db: Session = Depends(get_db)):
    """
    Admin-only system metrics in JSON form.
    Uses in-process counters stored on app.state.metrics and DB-derived order metrics.
    """
    now = datetime.utcnow()
    start_time = getattr(request.app.state, "start_time", now)
    uptime_seconds = (now - start_time).total_seconds()

    metrics = getattr(request.app.state, "metrics", None) or {}
    requests_count = int(metrics.get("requests", 0))
    total_response_ms = float(metrics.get("total_response_ms", 0.0))
    avg_response_ms = (total_response_ms / requests_count) if requests_count > 0 else None

    active_flash_sales = db.execute(
        select(func.count())
        .select_from(FlashSale)
        .where(
            FlashSale.status == FlashSaleStatus.active.value,
            FlashSale.start_at <= now,
            FlashSale.end_at >= now,
        )
    ).scalar() or 0

    start_today = datetime.combine(now.date(), datetime.min.time())
    total_orders_today = db.execute(
        select(func.count()).select_from(Order).where(Order.created_at >= start_today)
    ).scalar() or 0

    total_orders = db.execute(select(func.count()).select_from(Order)).scalar() or 0

    average_order_value = db.execute(select(func.avg(Order.total_amount))).scalar()
    if average_order_value is not None:
        average_order_value = Decimal(str(average_order_value)).quantize(Decimal("0.01"))

    return SystemMetricsResponse(
        uptime_seconds=uptime_seconds,
        now=now,
        requests_count=requests_count,
        avg_response_ms=avg_response_ms,
        client_errors=int(metrics.get("client_errors", 0)),
        server_errors=int(metrics.get("server_errors", 0)),
        orders_placed=int(metrics.get("orders_placed", 0)),
        active_flash_sales=int(active_flash_sales),
        total_orders_today=int(total_orders_today),
        total_orders=int(total_orders),
        average_order_value=average_order_value,
    )
