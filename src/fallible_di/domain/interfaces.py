from abc import ABC, abstractmethod
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    Generic,
    Hashable,
    Optional,
    Sequence,
    Type,
    TypeVar,
    get_args,
    get_origin,
)

from fallible_di.domain.enums import Lifetime
from fallible_di.domain.models import BindingKey, DependencyMetadata

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


class FallibleProvider(ABC, Generic[T, E]):
    """A provider of ``T`` whose failure channel is typed as ``E``.

    Subclass it with concrete arguments to declare the failure type::

        class RemoteProvider(FallibleProvider[T, RemoteError]):
            pass

    Leaving ``E`` open keeps the provider fully generic: any error type the
    provider method declares is accepted. ``failure_type`` may be set
    explicitly to override the generic argument.
    """

    failure_type: ClassVar[Optional[Type[BaseException]]] = None

    @abstractmethod
    def get(self) -> T:
        """Provide an instance of ``T``.

        Raises:
            E: The declared failure of this provider.
        """

    @classmethod
    def declared_failure_type(cls) -> Optional[Type[BaseException]]:
        """Return the failure type this interface advertises, or None when fully generic.

        Type variables are followed through intermediate generic interfaces, so
        ``class Remote(Base[T, RemoteError])`` over ``class Base(FallibleProvider[T, X])``
        advertises ``RemoteError``.
        """
        if cls.failure_type is not None:
            return cls.failure_type
        failure = _failure_argument(cls, {})
        if isinstance(failure, type) and issubclass(failure, BaseException):
            return failure
        return None


def _failure_argument(klass: type, substitutions: Dict[Any, Any]) -> Any:
    """Find the argument bound to ``E`` along the generic bases of ``klass``, or None."""
    for base in klass.__dict__.get("__orig_bases__", klass.__bases__):
        origin = get_origin(base) or base
        args = tuple(substitutions.get(arg, arg) for arg in get_args(base))
        if origin is FallibleProvider:
            return args[1] if len(args) == 2 else None
        if not isinstance(origin, type) or not issubclass(origin, FallibleProvider):
            continue
        parameters = getattr(origin, "__parameters__", ())
        found = _failure_argument(origin, dict(zip(parameters, args)))
        if found is not None:
            return found
    return None


class IParameterResolver(ABC):
    """Produces the current value of one provider method parameter."""

    @abstractmethod
    def resolve(self, container: Optional["IContainer"] = None) -> Any:
        """Return the value for the parameter.

        Args:
            container: The container resolving the provider method, when there is one.
        """


class IInvoker(ABC):
    """Invocation machinery used to call a provider method."""

    @abstractmethod
    def invoke(self, method: Callable[..., Any], instance: Optional[Any], args: Sequence[Any]) -> Any:
        """Call ``method`` against ``instance`` with positional ``args``.

        Raises:
            InvocationTargetError: Wrapping whatever the method raised.
            MethodAccessError: If the method cannot be reached.
        """


class ISlotHandle(ABC):
    """Builder-style handle on a fallible provider slot in a container."""

    @property
    @abstractmethod
    def key(self) -> BindingKey:
        """The binding key of the slot."""

    @abstractmethod
    def annotated_with(self, qualifier: Hashable) -> "ISlotHandle":
        """Return a handle on the same slot, discriminated by ``qualifier``."""

    @abstractmethod
    def to_implementation(self, method: Any) -> "ISlotHandle":
        """Install a provider method as the backing implementation of the slot."""

    @abstractmethod
    def in_scope(self, lifetime: Lifetime) -> None:
        """Apply a scope to the installed implementation."""

    @abstractmethod
    def declared_failure_type(self) -> Optional[Type[BaseException]]:
        """Failure type advertised by the slot's interface, or None when fully generic."""


class IContainer(ABC):
    """Abstract interface for dependency injection container operations."""

    @abstractmethod
    def register_singletons(self, dependencies: Dict[Any, Callable[["IContainer"], Any]]) -> None:
        """Register multiple singleton dependencies at once.

        Args:
            dependencies: A dictionary mapping types or keys to their builder functions.
        """

    @abstractmethod
    def register_transients(self, dependencies: Dict[Any, Callable[["IContainer"], Any]]) -> None:
        """Register multiple transient dependencies at once.

        Args:
            dependencies: A dictionary mapping types or keys to their builder functions.
        """

    @abstractmethod
    def bind_fallible_provider(
        self,
        key: Any,
        success_type: Any,
        interface: Type[FallibleProvider],
        source: Optional[str] = None,
    ) -> ISlotHandle:
        """Create the slot a fallible provider implementation is installed into."""

    @abstractmethod
    def expose(self, key: Any, *, source: Optional[str] = None) -> None:
        """Make ``key`` visible to the parent container.

        Containers that are not private record a diagnostic instead.
        """

    @abstractmethod
    def add_diagnostic(self, template: str, *args: Any, source: Optional[str] = None) -> None:
        """Record a configuration problem to be reported at the end of configuration."""

    @abstractmethod
    def resolve(self, key: Any) -> Any:
        """Resolve and return an instance for the requested type or key."""

    @abstractmethod
    def get_provider(self, key: Any) -> FallibleProvider:
        """Return the provider bound to the requested type or key."""

    @abstractmethod
    def create_scope(self) -> "IContainer":
        """Create and return a new scoped container instance."""

    @abstractmethod
    def clear(self) -> None:
        """Clear all registrations and instances from the container."""

    @abstractmethod
    def get_registry_copy(self) -> Dict[BindingKey, DependencyMetadata]:
        """Get a copy of the current registry of dependencies."""


class ILifetimeManager(ABC):
    """Abstract interface for managing dependency lifetimes."""

    @abstractmethod
    def get_or_create(
        self,
        metadata: DependencyMetadata,
        factory: Callable[[], Any],
    ) -> Any:
        """Get existing instance or create a new one based on lifetime.

        Args:
            metadata: The dependency metadata containing registration info.
            factory: A callable to create a new instance if needed.
        """

    @abstractmethod
    def clear_cache(self) -> None:
        """Clear any cached instances managed by this lifetime manager."""

    @abstractmethod
    def clear_scoped_cache(self) -> None:
        """Clear only the scoped instances cache."""

    @abstractmethod
    def get_singleton_cache(self) -> Dict[BindingKey, Any]:
        """Return the singleton cache, for sharing with child scopes."""

    @abstractmethod
    def get_lock(self) -> Any:
        """Return the lock guarding instance creation, for sharing with child scopes."""
