"""
FastAPI application serving a Lightning Address (LUD-16 / LUD-06).

Routes:
    GET /.well-known/lnurlp/{username}         payRequest document
    GET /lnurlp/{username}?amount=<msat>       invoice for that amount

Every failure is answered with ``{"status": "ERROR", "reason": "..."}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .broker import InvoiceBroker
from .errors import LightningAddressError, error_body
from .payinfo import resolve_pay_info
from .state import ServiceState

U64_MAX = 2**64 - 1
AMOUNT_PATTERN = r"^\+?[0-9]+$"

logger = structlog.get_logger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "query")
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "invalid query: " + "; ".join(parts)


def parse_amount(raw: str) -> int:
    """Convert an ``amount`` matching AMOUNT_PATTERN, rejecting values beyond u64."""
    amount = int(raw)
    if amount > U64_MAX:
        raise RequestValidationError(
            [
                {
                    "type": "less_than_equal",
                    "loc": ("query", "amount"),
                    "msg": f"Input should be less than or equal to {U64_MAX}",
                    "input": raw,
                }
            ]
        )
    return amount


def install_error_handlers(app: FastAPI) -> None:
    """Map every failure to a LUD-06 error body."""

    @app.exception_handler(LightningAddressError)
    async def handle_domain_error(request: Request, exc: LightningAddressError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=error_body(_describe_validation_error(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unhandled error", path=request.url.path)
        return JSONResponse(status_code=500, content=error_body(str(exc) or type(exc).__name__))


def create_app(state: ServiceState, broker: Optional[InvoiceBroker] = None) -> FastAPI:
    """
    Build the application around an already constructed ServiceState.

    Args:
        state: Shared, read-only service state.
        broker: Invoice broker; one over ``state`` is created when None.
    """
    broker = broker or InvoiceBroker(state)

    app = FastAPI(title="Lightning Address", docs_url=None, redoc_url=None)
    app.state.service = state
    app.state.broker = broker

    install_error_handlers(app)

    @app.get("/.well-known/lnurlp/{username}")
    async def get_pay_info(username: str) -> Dict[str, Any]:
        return resolve_pay_info(state, username).to_dict()

    @app.get("/lnurlp/{username}")
    async def create_invoice(
        username: str,
        amount: str = Query(..., pattern=AMOUNT_PATTERN),
    ) -> Dict[str, Any]:
        invoice = await broker.create_invoice(username, parse_amount(amount))
        return {"pr": invoice, "routes": []}

    return app
