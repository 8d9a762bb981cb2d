from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace_checkout.core.config import settings
from marketplace_checkout.core.exceptions import CheckoutError
from marketplace_checkout.core.logging import configure_logging, get_logger
from marketplace_checkout.database.connection import Base, engine
from marketplace_checkout.middleware.metrics import MetricsMiddleware, new_metrics
from marketplace_checkout.models import cart, customer, flash_sale, order, product  # noqa: F401
from marketplace_checkout.routes import system
from marketplace_checkout.routes.checkout import router as checkout_router

configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Marketplace Checkout & Order Commit Service")

app.add_middleware(MetricsMiddleware)

app.include_router(checkout_router)
app.include_router(system.router)


async def checkout_error_handler(request: Request, ex: CheckoutError):
    logger.info("%s %s rejected: %s %s", request.method, request.url.path, ex.code.value, ex.details)
    return JSONResponse(
        status_code=ex.status_code,
        content={
            "success": False,
            "error": ex.code.value,
            "message": ex.message,
            "details": ex.details,
        },
    )


app.add_exception_handler(CheckoutError, checkout_error_handler)


@app.on_event("startup")
async def startup_event():
    app.state.start_time = datetime.utcnow()
    app.state.metrics = new_metrics()
