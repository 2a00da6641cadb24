import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Set, Type

from fallible_di.application.binder import SlotHandle, bound_provider_type, interface_problem
from fallible_di.application.diagnostics import Diagnostics
from fallible_di.application.lifetime_manager import LifetimeManager
from fallible_di.domain import (
    BindingKey,
    ConfigurationError,
    ContainerSettings,
    DependencyMetadata,
    FallibleProvider,
    IContainer,
    ILifetimeManager,
    Lifetime,
    Registration,
    UnresolvableError,
)

if TYPE_CHECKING:
    from fallible_di.application.provider_method import FallibleProviderMethod

logger = logging.getLogger(__name__)


class DIContainer(IContainer):
    """Main dependency injection container.

    Holds plain builder registrations and fallible provider methods under
    binding keys. Configuration problems are appended to a diagnostics
    accumulator and reported together by ``finalize``.

    Attributes:
        _settings: Container-wide configuration.
        _registry: Dictionary mapping binding keys to their metadata.
        _lifetime_manager: Component managing instance lifetimes.
        _diagnostics: Accumulator shared with every scope built from this container.
    """

    def __init__(
        self,
        settings: Optional[ContainerSettings] = None,
        *,
        diagnostics: Optional[Diagnostics] = None,
        lifetime_manager: Optional[LifetimeManager] = None,
    ) -> None:
        """Initialize the DI container with an empty registry.

        Args:
            settings: Container configuration; defaults apply when omitted.
            diagnostics: Accumulator to share with a parent container.
            lifetime_manager: Lifetime manager to use, e.g. one sharing a parent's singletons.
        """
        self._settings = settings or ContainerSettings()
        self._registry: Dict[BindingKey, DependencyMetadata] = {}
        self._lifetime_manager: ILifetimeManager = lifetime_manager or LifetimeManager()
        self._diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    @property
    def settings(self) -> ContainerSettings:
        return self._settings

    @property
    def diagnostics(self) -> Diagnostics:
        return self._diagnostics

    def _register(
        self,
        key: Any,
        builder: Callable[[IContainer], Any],
        lifetime: Lifetime,
        interface: Optional[Type[FallibleProvider]] = None,
        source: Optional[str] = None,
    ) -> bool:
        """Internal registration method with validation.

        Args:
            key: The type or binding key to register.
            builder: Factory function to create the instance.
            lifetime: How long the instance should live.
            interface: Fallible provider interface the key is exposed through.
            source: Where the binding was declared.

        Returns:
            False when the key was already bound; a diagnostic is recorded instead.
        """
        key = BindingKey.of(key)
        if key in self._registry:
            existing = self._registry[key].registration
            self.add_diagnostic(
                "A binding to %s was already configured at %s.",
                key,
                existing.source or "an unknown source",
                source=source,
            )
            return False

        registration = Registration(
            key=key,
            builder=builder,
            lifetime=lifetime,
            interface=interface,
            source=source,
        )
        self._registry[key] = DependencyMetadata(registration=registration)
        logger.debug("Bound %s with %s lifetime", key, lifetime)
        return True

    def register_singletons(self, dependencies: Dict[Any, Callable[[IContainer], Any]]) -> None:
        """Register multiple singleton dependencies at once.

        Singleton dependencies are created once and shared across the container and its scopes.

        Args:
            dependencies: Dictionary mapping types or binding keys to builder functions.
                         Each builder receives the container and returns an instance.

        Example:
            >>> container.register_singletons({
            ...     DatabaseConfig: lambda c: DatabaseConfig.from_env(),
            ...     BindingKey.of(str, "dsn"): lambda c: c.resolve(DatabaseConfig).dsn,
            ... })
        """
        for key, builder in dependencies.items():
            self._register(key, builder, Lifetime.SINGLETON)

    def register_transients(self, dependencies: Dict[Any, Callable[[IContainer], Any]]) -> None:
        """Register multiple transient dependencies at once.

        Transient dependencies are created fresh on each resolution.

        Args:
            dependencies: Dictionary mapping types or binding keys to builder functions.
        """
        for key, builder in dependencies.items():
            self._register(key, builder, Lifetime.TRANSIENT)

    def bind_fallible_provider(
        self,
        key: Any,
        success_type: Any,
        interface: Type[FallibleProvider],
        source: Optional[str] = None,
    ) -> SlotHandle:
        """Create the slot a fallible provider method is installed into.

        The interface is validated here; a problem is recorded as a diagnostic
        and the slot then advertises no failure type.

        Args:
            key: The binding key of the slot.
            success_type: The type the provider produces.
            interface: The fallible provider interface to bind through.
            source: Where the binding was declared.

        Returns:
            A handle used to install the implementation and its scope.
        """
        key = BindingKey.of(key)
        if key.dependency_type != success_type:
            self.add_diagnostic("%s cannot be bound as a provider of %s.", key, success_type, source=source)

        problem = interface_problem(interface)
        if problem is not None:
            self.add_diagnostic(problem, interface, source=source)
        return SlotHandle(self, key, interface, valid=problem is None, source=source)

    def register_provider_method(
        self,
        key: BindingKey,
        method: "FallibleProviderMethod",
        interface: Optional[Type[FallibleProvider]] = None,
        source: Optional[str] = None,
    ) -> bool:
        """Back ``key`` with a provider method, in the default lifetime."""
        return self._register(
            key,
            method.invoke,
            self._settings.default_lifetime,
            interface=interface,
            source=source,
        )

    def rescope(self, key: BindingKey, lifetime: Lifetime) -> None:
        """Change the lifetime of an existing registration."""
        metadata = self._registry[key]
        registration = metadata.registration.model_copy(update={"lifetime": lifetime})
        self._registry[key] = DependencyMetadata(registration=registration)

    def install(self, *methods: "FallibleProviderMethod") -> None:
        """Configure every given provider method against this container."""
        for method in methods:
            method.configure(self)

    def expose(self, key: Any, *, source: Optional[str] = None) -> None:
        self.add_diagnostic(
            "Cannot expose %s on a standard container. Exposed bindings are only applicable to private containers.",
            BindingKey.of(key),
            source=source,
        )

    def add_diagnostic(self, template: str, *args: Any, source: Optional[str] = None) -> None:
        self._diagnostics.add(template, *args, source=source)

    def finalize(self) -> None:
        """End the configuration pass and report every recorded diagnostic.

        Raises:
            ConfigurationError: If diagnostics were recorded and the settings ask to raise.
        """
        if not len(self._diagnostics):
            return
        for diagnostic in self._diagnostics:
            logger.error("Configuration error: %s", diagnostic)
        if self._settings.raise_on_diagnostics:
            raise ConfigurationError(self._diagnostics.entries)

    def _lookup(self, key: BindingKey) -> DependencyMetadata:
        metadata = self._registry.get(key)
        if metadata is None:
            raise UnresolvableError(key, "No binding registered for this key")
        return metadata

    def resolve(self, key: Any) -> Any:
        """Resolve and return an instance for the specified type or key.

        Args:
            key: The type or binding key to resolve.

        Returns:
            Instance produced by the binding, cached according to its lifetime.

        Raises:
            UnresolvableError: If nothing is bound to the key.

        Example:
            >>> connection = container.resolve(Connection)
        """
        key = BindingKey.of(key)
        metadata = self._lookup(key)
        instance = self._lifetime_manager.get_or_create(
            metadata,
            lambda: metadata.registration.builder(self),
        )
        metadata.resolution_count += 1
        return instance

    def get_provider(self, key: Any) -> FallibleProvider:
        """Return a provider whose ``get`` resolves ``key`` from this container.

        The provider implements the interface the key was bound through, or the
        base ``FallibleProvider`` for plain registrations.
        """
        key = BindingKey.of(key)
        interface = self._lookup(key).registration.interface or FallibleProvider
        return bound_provider_type(interface)(self, key)

    def get_registry_copy(self) -> Dict[BindingKey, DependencyMetadata]:
        """Get a copy of the registry for scope inheritance."""
        return self._registry.copy()

    def set_registry(self, registry: Dict[BindingKey, DependencyMetadata]) -> None:
        """Set the registry from a parent container."""
        self._registry = registry

    def create_scope(self) -> "DIContainer":
        """Create a child container for scoped lifetime.

        Scoped containers inherit parent registrations and singletons but maintain
        separate instance caches for scoped dependencies.

        Example:
            >>> scoped = container.create_scope()
            >>> assert scoped.resolve(RequestContext) is scoped.resolve(RequestContext)
        """
        scoped_container = DIContainer(
            self._settings,
            diagnostics=self._diagnostics,
            lifetime_manager=self._scoped_lifetime_manager(),
        )
        scoped_container.set_registry(self.get_registry_copy())
        return scoped_container

    def _scoped_lifetime_manager(self) -> LifetimeManager:
        return LifetimeManager(self._lifetime_manager.get_singleton_cache(), self._lifetime_manager.get_lock())

    def end_scope(self) -> None:
        """Drop the instances cached for this scope, keeping singletons."""
        self._lifetime_manager.clear_scoped_cache()

    def clear(self) -> None:
        """Clear all registrations, cached instances and diagnostics."""
        self._registry.clear()
        self._lifetime_manager.clear_cache()
        self._diagnostics.clear()


class PrivateContainer(DIContainer):
    """Container whose bindings are invisible to its parent unless exposed.

    Keys it does not bind itself are resolved by the parent. Diagnostics are
    recorded in the parent's accumulator. Its singletons are its own, but
    instance creation is guarded by the parent's lock.

    Attributes:
        _parent: The enclosing container.
        _exposed: Keys published to the parent.
    """

    def __init__(self, parent: DIContainer, *, lifetime_manager: Optional[LifetimeManager] = None) -> None:
        super().__init__(
            parent.settings,
            diagnostics=parent.diagnostics,
            lifetime_manager=lifetime_manager or LifetimeManager(lock=parent._lifetime_manager.get_lock()),
        )
        self._parent = parent
        self._exposed: Set[BindingKey] = set()

    @property
    def exposed_keys(self) -> Set[BindingKey]:
        return set(self._exposed)

    def expose(self, key: Any, *, source: Optional[str] = None) -> None:
        """Publish ``key`` to the parent container.

        The parent gets a transient registration delegating to this container,
        so caching stays governed by the private binding's own scope.
        """
        key = BindingKey.of(key)
        if key not in self._registry:
            self.add_diagnostic("Could not expose %s, it must be explicitly bound.", key, source=source)
            return

        interface = self._registry[key].registration.interface
        if self._parent._register(key, lambda c: self.resolve(key), Lifetime.TRANSIENT, interface, source):
            self._exposed.add(key)
            logger.debug("Exposed %s to the parent container", key)

    def create_scope(self) -> "PrivateContainer":
        """Create a child scope that keeps the private bindings and the fallback to the parent."""
        scoped_container = PrivateContainer(self._parent, lifetime_manager=self._scoped_lifetime_manager())
        scoped_container.set_registry(self.get_registry_copy())
        scoped_container._exposed = set(self._exposed)
        return scoped_container

    def resolve(self, key: Any) -> Any:
        key = BindingKey.of(key)
        if key in self._registry:
            return super().resolve(key)
        return self._parent.resolve(key)

    def get_provider(self, key: Any) -> FallibleProvider:
        key = BindingKey.of(key)
        if key in self._registry:
            return super().get_provider(key)
        return self._parent.get_provider(key)
