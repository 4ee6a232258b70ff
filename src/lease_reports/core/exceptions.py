"""Exceptions raised by the reporting core and the handlers that map them to responses.

Every failure is turned into a generic JSON body at the request boundary.
Internal detail goes to the log, never to the caller.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ReportError(Exception):
    """Base exception for the reporting core"""

    pass


class Unauthorized(ReportError):
    """Bearer credential is missing or malformed"""

    pass


class InvalidFilter(ReportError):
    """A filter parameter could not be parsed or has an unsupported value"""

    def __init__(self, field: str, value: Optional[str], reason: str = "invalid value"):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid filter {field}={value!r}: {reason}")


class QueryFailure(ReportError):
    """The data store failed while running an aggregation"""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Query failed during {operation}")


class ExportFailure(ReportError):
    """Document generation or streaming failed"""

    def __init__(self, document: str):
        self.document = document
        super().__init__(f"Export failed for {document}")


async def unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    logger.warning(f"Unauthorized request to {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"message": "Not authenticated"},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def invalid_filter_handler(request: Request, exc: InvalidFilter) -> JSONResponse:
    logger.info(f"Rejected filter on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid filter", "field": exc.field},
    )


async def query_failure_handler(request: Request, exc: QueryFailure) -> JSONResponse:
    logger.error(f"Query failure on {request.url.path} ({exc.operation})", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Server error"},
    )


async def export_failure_handler(request: Request, exc: ExportFailure) -> JSONResponse:
    logger.error(f"Export failure on {request.url.path} ({exc.document})", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Export failed"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Unauthorized, unauthorized_handler)
    app.add_exception_handler(InvalidFilter, invalid_filter_handler)
    app.add_exception_handler(QueryFailure, query_failure_handler)
    app.add_exception_handler(ExportFailure, export_failure_handler)
