import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.services.movements import InvalidQuantityError, NegativeStockError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, message: str, field: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "errors": {field: message}},
    )


async def negative_stock_handler(request: Request, exc: NegativeStockError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_409_CONFLICT, str(exc), "general")


async def invalid_quantity_handler(request: Request, exc: InvalidQuantityError) -> JSONResponse:
    logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_400_BAD_REQUEST, str(exc), "quantity")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NegativeStockError, negative_stock_handler)
    app.add_exception_handler(InvalidQuantityError, invalid_quantity_handler)
