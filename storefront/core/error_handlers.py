# storefront/core/error_handlers.py
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from storefront.core.errors import CartError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Render CartError subclasses as {"error": {"code", "message"}}."""

    @app.exception_handler(CartError)
    async def cart_error_handler(request: Request, exc: CartError):
        if exc.http_status >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())
