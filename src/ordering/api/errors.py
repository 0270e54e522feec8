"""Exception handlers translating ordering errors into JSON responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.exceptions import OrderingError

logger = structlog.get_logger(__name__)


async def ordering_error_handler(request: Request, exc: OrderingError) -> JSONResponse:
    content = {"detail": exc.message}
    if "errors" in exc.context:
        content["errors"] = exc.context["errors"]
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.message, **exc.context)
    return JSONResponse(status_code=exc.status_code, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": errors})


async def protean_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": "Invalid request", "errors": exc.messages})


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": "Not found"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(OrderingError, ordering_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, protean_validation_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
