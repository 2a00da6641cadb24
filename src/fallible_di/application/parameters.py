"""Application layer - Provider method parameter resolution."""

from typing import Any, List, Optional, Sequence

from fallible_di.domain import BindingKey, IContainer, IParameterResolver


def resolve_parameters(resolvers: Sequence[IParameterResolver], container: Optional[IContainer] = None) -> List[Any]:
    """Resolve every parameter of a provider method, in declaration order.

    Every resolver is called exactly once, even those whose value the method
    ends up ignoring. Nothing is cached and failures propagate unmodified.

    Args:
        resolvers: One resolver per parameter, positionally matched.
        container: The container resolving the provider method, if any.

    Returns:
        The argument values, in the same order.
    """
    return [resolver.resolve(container) for resolver in resolvers]


class ContainerParameterResolver(IParameterResolver):
    """Resolves a parameter by looking its binding key up in a container at call time.

    The container resolving the provider method takes precedence, so scopes and
    test containers built from the original one supply their own instances.

    Attributes:
        _container: The container the key is resolved from when no other is given.
        _key: The binding key of the parameter.
    """

    def __init__(self, container: IContainer, key: Any) -> None:
        self._container = container
        self._key = BindingKey.of(key)

    @property
    def key(self) -> BindingKey:
        return self._key

    def resolve(self, container: Optional[IContainer] = None) -> Any:
        target = container if container is not None else self._container
        return target.resolve(self._key)

    def __repr__(self) -> str:
        return f"ContainerParameterResolver({self._key})"
