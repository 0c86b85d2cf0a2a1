"""
Controllers Package - Presentation Layer

This package contains FastAPI controllers (routers) that handle
HTTP requests and responses. Controllers are responsible for
input validation, error handling, and mapping between API DTOs
and application layer use cases.
"""

from .forecasting_controller import router as forecasting_router
from .system_controller import router as system_router

__all__ = ["forecasting_router", "system_router"]
