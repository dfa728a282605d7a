"""HTTP mapping for checkout failures that are not validation errors.

Protean's own exceptions (``ValidationError`` -> 400 and friends) are
handled by ``protean.integrations.fastapi.register_exception_handlers``.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.errors import PersistenceError
from payments.gateway.port import GatewayError, GatewayUnavailable


def register_checkout_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(GatewayUnavailable)
    async def gateway_unavailable_handler(request: Request, exc: GatewayUnavailable) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"error": str(exc), "reference": exc.reference, "retry": True},
        )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(
            status_code=402,
            content={"error": str(exc), "reference": exc.reference, "retry": True},
        )

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={"error": str(exc), "retry": True},
        )
