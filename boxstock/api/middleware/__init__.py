"""API middleware."""

from boxstock.api.middleware.error_handler import ErrorHandlerMiddleware
from boxstock.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
