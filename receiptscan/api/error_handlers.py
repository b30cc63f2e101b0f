"""
Custom exception handlers for FastAPI.
Validation and server errors are rendered as JSON without echoing the
request body, which may carry credential form fields.
"""

import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import HTTP_422_UNPROCESSABLE_ENTITY, HTTP_500_INTERNAL_SERVER_ERROR

from receiptscan.core.observability import sentry_capture


logger = logging.getLogger(__name__)


def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "error": "Validation error", "details": details},
    )


def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("[api] unhandled error path=%s", request.url.path)
    sentry_capture(exc)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )
