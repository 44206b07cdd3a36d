"""Centralized error handling for the application"""

from datetime import datetime, timezone
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import traceback

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when required configuration is missing"""
    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DoceboAPIError(Exception):
    """Custom exception for Docebo API errors (non-2xx responses and auth failures)"""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(Exception):
    """A user, course or learning plan could not be resolved"""
    def __init__(self, message: str, resource_type: str = None, identifier: str = None):
        self.message = message
        self.resource_type = resource_type
        self.identifier = identifier
        super().__init__(self.message)


class EnrollmentRejectedError(Exception):
    """Docebo accepted the request but refused the enrollment"""
    def __init__(self, message: str, reason: str = None, details: dict = None):
        self.message = message
        self.reason = reason
        self.details = details or {}
        super().__init__(self.message)


class CSVValidationError(Exception):
    """Uploaded CSV failed structural validation"""
    def __init__(self, errors: list):
        self.errors = list(errors)
        self.message = "CSV validation failed"
        super().__init__(f"{self.message}: {'; '.join(self.errors)}")


def error_envelope(message: str, **extra) -> dict:
    """Chat-style failure payload shared by every error handler"""
    content = {
        "response": message,
        "success": False,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    content.update(extra)
    return content


async def docebo_api_error_handler(request: Request, exc: DoceboAPIError):
    """Handle Docebo API errors"""
    logger.error(
        f"Docebo API Error: {exc.message}",
        extra={
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(f"❌ **Docebo API Error**: {exc.message}")
    )


async def config_error_handler(request: Request, exc: ConfigError):
    """Handle configuration errors"""
    logger.error(
        f"Configuration Error: {exc.message}",
        extra={
            "details": exc.details,
            "path": request.url.path
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope(
            "❌ **Configuration Error**: the Docebo connection is not configured. "
            "Check the DOCEBO_* environment variables."
        )
    )


async def csv_validation_error_handler(request: Request, exc: CSVValidationError):
    """Handle CSV validation errors"""
    logger.warning(
        f"CSV Validation Error: {exc.errors}",
        extra={"path": request.url.path}
    )

    bullets = "\n".join(f"• {error}" for error in exc.errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(f"❌ **CSV Validation Failed**:\n\n{bullets}", errors=exc.errors)
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors"""
    logger.warning(
        f"Validation Error: {exc.errors()}",
        extra={"path": request.url.path}
    )

    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location or 'body'}: {error.get('msg')}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(
            "❌ **Invalid request**: " + "; ".join(problems),
            errors=problems
        )
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    logger.warning(
        f"HTTP Exception: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail))
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle all other exceptions"""
    logger.error(
        f"Unexpected Error: {str(exc)}",
        extra={
            "path": request.url.path,
            "traceback": traceback.format_exc()
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("❌ **System Error**: an unexpected error occurred. Please try again.")
    )


def register_error_handlers(app):
    """Register all error handlers with the FastAPI app"""
    app.add_exception_handler(DoceboAPIError, docebo_api_error_handler)
    app.add_exception_handler(ConfigError, config_error_handler)
    app.add_exception_handler(CSVValidationError, csv_validation_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
