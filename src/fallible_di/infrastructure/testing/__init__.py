"""
Testing utilities module.

Provides helpers and utilities for testing applications using fallible-di.
"""

from .utilities import CountingResolver, StaticResolver, TestContainer, create_mock_container

__all__ = [
    "CountingResolver",
    "StaticResolver",
    "TestContainer",
    "create_mock_container",
]
