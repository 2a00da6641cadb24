"""
FastAPI integration module.

Provides helpers for serving fallible providers from FastAPI endpoints.
"""

from .integration import (
    ScopedContainerMiddleware,
    add_failure_handler,
    create_fastapi_dependency,
    create_scoped_dependency,
)

__all__ = [
    "create_fastapi_dependency",
    "create_scoped_dependency",
    "add_failure_handler",
    "ScopedContainerMiddleware",
]
