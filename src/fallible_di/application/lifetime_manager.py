import threading
from typing import Any, Callable, Dict, Optional

from fallible_di.domain import BindingKey, DependencyMetadata, ILifetimeManager, Lifetime


class LifetimeManager(ILifetimeManager):
    """Manages instance lifetimes for singleton, transient, and scoped bindings.

    Sits above the providers it caches: failures raised while creating an
    instance propagate unchanged and nothing is cached for them.

    Attributes:
        _singleton_cache: Cache for singleton instances, shared with child scopes.
        _scoped_cache: Cache for scoped instances (per scope context).
        _lock: Guards creation of cached instances; shared by a root and its scopes.
    """

    def __init__(
        self,
        parent_singleton_cache: Optional[Dict[BindingKey, Any]] = None,
        lock: Optional[Any] = None,
    ) -> None:
        """Initialize the lifetime manager with empty caches.

        Args:
            parent_singleton_cache: Optional parent singleton cache for scoped containers.
            lock: Lock of the manager owning ``parent_singleton_cache``. Scopes sharing
                a cache must share its lock, or singletons may be built twice.
        """
        if parent_singleton_cache is not None:
            # Scoped container: share parent's singleton cache
            self._singleton_cache: Dict[BindingKey, Any] = parent_singleton_cache
        else:
            self._singleton_cache = {}
        self._scoped_cache: Dict[BindingKey, Any] = {}
        self._lock = lock if lock is not None else threading.RLock()

    def get_or_create(self, metadata: DependencyMetadata, factory: Callable[[], Any]) -> Any:
        """Get existing instance or create new one based on lifetime.

        Args:
            metadata: Registration metadata containing lifetime info.
            factory: Function to create new instance if needed.

        Returns:
            Instance according to lifetime rules:
            - Singleton: Returns cached instance or creates and caches new one
            - Transient: Always creates new instance
            - Scoped: Returns cached instance within scope or creates new one
        """
        lifetime = metadata.registration.lifetime
        key = metadata.registration.key

        if lifetime == Lifetime.SINGLETON:
            return self._cached(self._singleton_cache, key, factory)

        if lifetime == Lifetime.SCOPED:
            return self._cached(self._scoped_cache, key, factory)

        # Lifetime.TRANSIENT
        return factory()

    def _cached(self, cache: Dict[BindingKey, Any], key: BindingKey, factory: Callable[[], Any]) -> Any:
        with self._lock:
            if key not in cache:
                cache[key] = factory()
            return cache[key]

    def clear_cache(self) -> None:
        """Clear all cached instances (singletons and scoped)."""
        self._singleton_cache.clear()
        self._scoped_cache.clear()

    def clear_scoped_cache(self) -> None:
        """Clear only the scoped instance cache.

        Useful when ending a scope (e.g., end of HTTP request).
        """
        self._scoped_cache.clear()

    def get_singleton_cache(self) -> Dict[BindingKey, Any]:
        """Get reference to singleton cache for scope inheritance."""
        return self._singleton_cache

    def get_lock(self) -> Any:
        """Get the lock guarding instance creation, shared with child scopes."""
        return self._lock
