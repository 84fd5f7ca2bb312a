"""
API Responses and Exception Handlers

Standard response envelope and the mapping from domain errors to HTTP
status codes.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from adaptive_learning.common.exceptions import (
    BaseError, NoMatchingTemplateError, SessionError, StorageError, ValidationError
)
from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.serialization import serialize

# Module logger
logger = app_logger.getChild("api.handlers")


class APIResponse:
    """Standard API response structure"""

    @staticmethod
    def success(data: Any = None, message: str = "Success") -> Dict[str, Any]:
        """
        Create a success response.

        Args:
            data: Response data (domain objects are serialized)
            message: Success message

        Returns:
            Response dictionary
        """
        return {
            "status": "success",
            "message": message,
            "data": serialize(data),
        }

    @staticmethod
    def error(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
        """
        Create an error response.

        Args:
            message: Error message
            details: Optional error details

        Returns:
            Response dictionary
        """
        response = {
            "status": "error",
            "message": message,
        }
        if details is not None:
            response["details"] = serialize(details)
        return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return request validation failures in the standard error envelope."""
    error_details = []
    for error in exc.errors():
        error_details.append({
            "location": list(error.get("loc", [])),
            "message": error.get("msg", "Unknown validation error"),
            "type": error.get("type", ""),
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=APIResponse.error("Validation error", error_details),
    )


async def domain_exception_handler(request: Request, exc: BaseError) -> JSONResponse:
    """Map domain errors to HTTP status codes."""
    details = None
    if isinstance(exc, SessionError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        details = exc.errors
    elif isinstance(exc, NoMatchingTemplateError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, StorageError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.warning(f"{request.method} {request.url.path} failed with {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=APIResponse.error(exc.message, details))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(BaseError, domain_exception_handler)
