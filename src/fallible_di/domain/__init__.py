"""
Domain layer - Core business logic and models.

This layer contains the fundamental rules and models for binding fallible providers.
It has no dependencies on other layers.
"""

from .enums import FailureKind, Lifetime
from .exceptions import (
    ConfigurationError,
    DIException,
    FatalProvisionError,
    InvocationTargetError,
    MethodAccessError,
    UnresolvableError,
)
from .failures import DEFAULT_UNCHECKED_ERROR_TYPES, classify_error_type
from .interfaces import FallibleProvider, IContainer, IInvoker, ILifetimeManager, IParameterResolver, ISlotHandle
from .models import (
    BindingKey,
    ContainerSettings,
    Dependency,
    DependencyMetadata,
    Diagnostic,
    Registration,
    describe,
)

__all__ = [
    # Enums
    "Lifetime",
    "FailureKind",
    # Exceptions
    "DIException",
    "UnresolvableError",
    "ConfigurationError",
    "InvocationTargetError",
    "MethodAccessError",
    "FatalProvisionError",
    # Failure classification
    "DEFAULT_UNCHECKED_ERROR_TYPES",
    "classify_error_type",
    # Interfaces
    "FallibleProvider",
    "IContainer",
    "IInvoker",
    "ILifetimeManager",
    "IParameterResolver",
    "ISlotHandle",
    # Models
    "BindingKey",
    "ContainerSettings",
    "Dependency",
    "DependencyMetadata",
    "Diagnostic",
    "Registration",
    "describe",
]
