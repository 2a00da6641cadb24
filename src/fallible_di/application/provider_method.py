"""Application layer - Provider methods bound as fallible providers."""

import inspect
import logging
import os
from typing import Any, Callable, FrozenSet, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from fallible_di.application.invoker import MethodInvoker
from fallible_di.application.parameters import resolve_parameters
from fallible_di.domain import (
    DEFAULT_UNCHECKED_ERROR_TYPES,
    BindingKey,
    Dependency,
    FailureKind,
    FatalProvisionError,
    IContainer,
    IInvoker,
    InvocationTargetError,
    IParameterResolver,
    Lifetime,
    MethodAccessError,
    classify_error_type,
)

logger = logging.getLogger(__name__)


def _source_location(method: Callable[..., Any]) -> str:
    target = inspect.unwrap(getattr(method, "__func__", method))
    name = getattr(target, "__qualname__", None) or repr(target)
    module = getattr(target, "__module__", None)
    if module:
        name = f"{module}.{name}"
    code = getattr(target, "__code__", None)
    if code is None:
        return name
    return f"{name}({os.path.basename(code.co_filename)}:{code.co_firstlineno})"


class FallibleProviderMethod(BaseModel):
    """A factory callable bound as the implementation of a fallible provider.

    Built once by whatever discovers provider methods, then installed into a
    container with ``configure`` and invoked on every resolution of its key.
    It holds no mutable state, so concurrent invocations are independent.

    Attributes:
        key: The binding key the method provides.
        method: The factory callable.
        instance: Owning instance the method is invoked against, or None.
        parameter_resolvers: One resolver per method parameter, in order.
        dependencies: Injection points, for dependency graph introspection only.
        scope: Scope the binding is cached in; None means the container default.
        exposed: Whether the key is exposed from a private container to its parent.
        interface: The fallible provider interface the key is bound through.
        exception_types: Error types the method declares it may raise.
        unchecked_error_types: Base classes exempt from contract checks.
        invoker: Invocation machinery used to call the method.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: BindingKey
    method: Callable[..., Any]
    instance: Optional[Any] = None
    parameter_resolvers: Tuple[IParameterResolver, ...] = ()
    dependencies: FrozenSet[Dependency] = frozenset()
    scope: Optional[Lifetime] = None
    exposed: bool = False
    interface: Type
    exception_types: Tuple[Type[BaseException], ...] = ()
    unchecked_error_types: Tuple[Type[BaseException], ...] = DEFAULT_UNCHECKED_ERROR_TYPES
    invoker: IInvoker = Field(default_factory=MethodInvoker)

    _declared_failure_types: Tuple[Type[BaseException], ...] = PrivateAttr(default=())

    def model_post_init(self, __context: Any) -> None:
        self._declared_failure_types = tuple(
            exception_type
            for exception_type in self.exception_types
            if classify_error_type(exception_type, self.unchecked_error_types) is FailureKind.DECLARED
        )

    @property
    def declared_failure_types(self) -> Tuple[Type[BaseException], ...]:
        """Declared error types that carry a contract, i.e. excluding unchecked ones."""
        return self._declared_failure_types

    def configure(self, container: IContainer) -> None:
        """Register this method with ``container`` and validate its error contract.

        Problems are recorded as container diagnostics rather than raised, so
        that every misconfiguration is reported at the end of configuration.

        Args:
            container: The container being configured.
        """
        source = str(self)
        slot = container.bind_fallible_provider(
            BindingKey.of(self.key.dependency_type),
            self.key.dependency_type,
            self.interface,
            source=source,
        )
        if self.key.qualifier is not None:
            slot = slot.annotated_with(self.key.qualifier)

        slot.to_implementation(self)
        if self.scope is not None:
            slot.in_scope(self.scope)

        if self.exposed:
            # Only private containers honour this; others record a diagnostic.
            container.expose(self.key, source=source)

        failure_type = slot.declared_failure_type()
        for exception_type in self.exception_types:
            if exception_type not in self._declared_failure_types:
                continue
            if failure_type is not None and not issubclass(exception_type, failure_type):
                container.add_diagnostic(
                    "%s is not compatible with the exception (%s) declared in the FallibleProvider interface (%s)",
                    exception_type,
                    failure_type,
                    self.interface,
                    source=source,
                )

    def invoke(self, container: Optional[IContainer] = None) -> Any:
        """Resolve the parameters and invoke the method.

        Args:
            container: The container resolving the key. Parameters are looked up
                in it, so a scope supplies its own scoped instances.

        Returns:
            Exactly what the method returned.

        Raises:
            FatalProvisionError: If the invoker could not reach the method.
            Exception: Whatever the method raised, as the same object.
        """
        arguments = resolve_parameters(self.parameter_resolvers, container)
        try:
            return self.invoker.invoke(self.method, self.instance, arguments)
        except MethodAccessError as e:
            logger.error("Provider method %s could not be reached: %s", self, e)
            raise FatalProvisionError(f"{self} could not be invoked: {e}") from e
        except InvocationTargetError as envelope:
            failure = envelope.cause

        # Raised outside the handler so the envelope is not chained onto it.
        raise failure

    def classify_failure(self, error: BaseException) -> FailureKind:
        """Tell which channel an error raised by ``invoke`` belongs to.

        Args:
            error: An error raised by ``invoke``.

        Returns:
            FATAL for invocation machinery failures, DECLARED for instances of a
            declared non-runtime error type, UNCHECKED for everything else.
        """
        if isinstance(error, FatalProvisionError):
            return FailureKind.FATAL
        if classify_error_type(type(error), self.unchecked_error_types) is FailureKind.UNCHECKED:
            return FailureKind.UNCHECKED
        if isinstance(error, self._declared_failure_types):
            return FailureKind.DECLARED
        return FailureKind.UNCHECKED

    def __str__(self) -> str:
        return f"@fallible_provides {_source_location(self.method)}"
