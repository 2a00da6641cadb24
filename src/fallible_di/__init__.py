"""
fallible-di: Bind factory methods as typed, fallible providers in a DI container.

Public API exports for the fallible-di package.
"""

# Application exports
from fallible_di.application.container import DIContainer, PrivateContainer
from fallible_di.application.parameters import ContainerParameterResolver
from fallible_di.application.provider_method import FallibleProviderMethod

# Domain exports
from fallible_di.domain.enums import FailureKind, Lifetime
from fallible_di.domain.exceptions import (
    ConfigurationError,
    DIException,
    FatalProvisionError,
    UnresolvableError,
)
from fallible_di.domain.interfaces import FallibleProvider
from fallible_di.domain.models import BindingKey, ContainerSettings, Dependency

__version__ = "0.1.0"

__all__ = [
    # Container
    "DIContainer",
    "PrivateContainer",
    "ContainerSettings",
    # Providers
    "FallibleProvider",
    "FallibleProviderMethod",
    "ContainerParameterResolver",
    "BindingKey",
    "Dependency",
    # Enums
    "Lifetime",
    "FailureKind",
    # Exceptions
    "DIException",
    "ConfigurationError",
    "FatalProvisionError",
    "UnresolvableError",
]
