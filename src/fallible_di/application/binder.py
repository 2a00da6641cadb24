"""Application layer - Fallible provider slots."""

import logging
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Hashable, Optional, Type

from fallible_di.domain import BindingKey, FallibleProvider, ISlotHandle, Lifetime

if TYPE_CHECKING:
    from fallible_di.application.container import DIContainer
    from fallible_di.application.provider_method import FallibleProviderMethod

logger = logging.getLogger(__name__)


class _BoundProvider:
    """Mixin implementing ``get`` by resolving a key from a container."""

    def __init__(self, container: "DIContainer", key: BindingKey) -> None:
        self._container = container
        self._key = key

    def get(self) -> Any:
        return self._container.resolve(self._key)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._key})"


@lru_cache(maxsize=None)
def bound_provider_type(interface: Type[FallibleProvider]) -> Type[FallibleProvider]:
    """Build the concrete class implementing ``interface`` on top of a container."""
    return type(f"Bound{interface.__name__}", (_BoundProvider, interface), {})


def interface_problem(interface: Any) -> Optional[str]:
    """Explain why ``interface`` cannot back a fallible provider slot, or return None."""
    if not isinstance(interface, type) or not issubclass(interface, FallibleProvider):
        return "%s must be a subclass of FallibleProvider"
    extra = sorted(set(getattr(interface, "__abstractmethods__", ())) - {"get"})
    if extra:
        return "%s may only declare a get() method, but also declares " + ", ".join(extra)
    return None


class SlotHandle(ISlotHandle):
    """Handle on the slot a fallible provider method is installed into.

    Attributes:
        _container: The container owning the slot.
        _key: The binding key of the slot.
        _interface: The fallible provider interface the slot is exposed through.
        _valid: Whether the interface passed validation when the slot was created.
        _source: Declaration site, for diagnostics.
        _installed: Whether an implementation was installed through this handle.
    """

    def __init__(
        self,
        container: "DIContainer",
        key: BindingKey,
        interface: Type[FallibleProvider],
        valid: bool = True,
        source: Optional[str] = None,
    ) -> None:
        self._container = container
        self._key = key
        self._interface = interface
        self._valid = valid
        self._source = source
        self._installed = False

    @property
    def key(self) -> BindingKey:
        return self._key

    def annotated_with(self, qualifier: Hashable) -> "SlotHandle":
        return SlotHandle(self._container, self._key.with_qualifier(qualifier), self._interface, self._valid, self._source)

    def to_implementation(self, method: "FallibleProviderMethod") -> "SlotHandle":
        """Install ``method`` as the implementation of the slot, in the container's default scope."""
        self._installed = self._container.register_provider_method(
            self._key,
            method,
            interface=self._interface if self._valid else None,
            source=self._source,
        )
        return self

    def in_scope(self, lifetime: Lifetime) -> None:
        if self._installed:
            self._container.rescope(self._key, lifetime)

    def declared_failure_type(self) -> Optional[Type[BaseException]]:
        if not self._valid:
            return None
        return self._interface.declared_failure_type()
