"""
Application layer - Use cases and orchestration.

This layer contains the use cases that orchestrate domain objects.
It depends only on the Domain layer.
"""

from .binder import SlotHandle
from .container import DIContainer, PrivateContainer
from .diagnostics import Diagnostics
from .invoker import MethodInvoker
from .lifetime_manager import LifetimeManager
from .parameters import ContainerParameterResolver, resolve_parameters
from .provider_method import FallibleProviderMethod

__all__ = [
    "DIContainer",
    "PrivateContainer",
    "Diagnostics",
    "FallibleProviderMethod",
    "MethodInvoker",
    "ContainerParameterResolver",
    "resolve_parameters",
    "SlotHandle",
    "LifetimeManager",
]
