"""
Middleware package.
"""
from shopdesk.middleware.error_handler import ErrorHandlerMiddleware

__all__ = [
    "ErrorHandlerMiddleware",
]
