"""
Infrastructure layer - Framework integrations and test support.

Adapters serving fallible providers through FastAPI, and container doubles for tests.
Depends on both the Application and Domain layers.
"""

from . import fastapi_integration, testing

__all__ = [
    "fastapi_integration",
    "testing",
]
