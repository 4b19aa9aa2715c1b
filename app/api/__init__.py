# app/api/__init__.py
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routers import carts, health, orders, payments, promotions
from app.domain.errors import CheckoutError
from app.utils.logging import get_logger

logger = get_logger(__name__)


async def checkout_error_handler(request: Request, exc: CheckoutError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unexpected_error_handler(request: Request, exc: Exception):
    correlation_id = uuid.uuid4().hex
    logger.exception(f"Unhandled error [{correlation_id}] on {request.method} {request.url.path}")
    #bez szczegolow dla klienta
    return JSONResponse(
        status_code=500,
        content={
            "code": "INTERNAL_ERROR",
            "message": "Internal server error",
            "correlationId": correlation_id,
        },
    )


def create_app() -> FastAPI:
    app = FastAPI(title="Checkout Service", version="1.0.0")

    app.add_exception_handler(CheckoutError, checkout_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(promotions.router)
    return app
