from pydantic import BaseModel
from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal


class HealthCheckResponse(BaseModel):
    status: str
    now: datetime
    uptime_seconds: float
    db_ok: bool
    extra: Optional[Dict[str, Any]] = None


class SystemMetricsResponse(BaseModel):
    uptime_seconds: float
    now: datetime

    # middleware counters
    requests_count: int
    avg_response_ms: Optional[float] = None
    client_errors: int = 0
    server_errors: int = 0
    orders_placed: int = 0

    # DB metrics
    active_flash_sales: int
    total_orders_today: int
    total_orders: int
    average_order_value: Optional[Decimal] = None
