from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence

if TYPE_CHECKING:
    from fallible_di.domain.models import Diagnostic


class DIException(Exception):
    """Base exception for DI-related errors."""


class UnresolvableError(DIException):
    """Raised when a binding key cannot be resolved.

    This occurs when:
    - No registration exists for the requested key in the container or its parents.
    - A private container was asked for a key it never bound nor inherited.

    Attributes:
        key: The binding key that could not be resolved.
        reason: Optional reason for the failure.
    """

    def __init__(self, key: Any, reason: Optional[str] = None) -> None:
        self.key = key
        self.reason = reason
        message = f"Cannot resolve dependency for key: {key}"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class ConfigurationError(DIException):
    """Raised at the end of configuration when diagnostics were recorded.

    Attributes:
        diagnostics: Every diagnostic collected during the configuration pass.
    """

    def __init__(self, diagnostics: Sequence["Diagnostic"]) -> None:
        self.diagnostics = list(diagnostics)
        lines = [f"Unable to configure container, {len(self.diagnostics)} error(s):"]
        for index, diagnostic in enumerate(self.diagnostics, start=1):
            lines.append(f"  {index}) {diagnostic}")
        super().__init__("\n".join(lines))


class InvocationTargetError(DIException):
    """Envelope raised by an invoker when the invoked callable itself failed.

    Attributes:
        cause: The error raised by the callable.
    """

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Provider method raised {type(cause).__name__}: {cause}")


class MethodAccessError(DIException):
    """Raised by an invoker when the provider method cannot be reached at all.

    Attributes:
        method: The callable that could not be invoked.
    """

    def __init__(self, method: Callable[..., Any], reason: Optional[str] = None) -> None:
        self.method = method
        self.reason = reason
        message = f"Cannot access provider method {method!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class FatalProvisionError(DIException, AssertionError):
    """Raised when invocation hits a state registration should have made impossible.

    This signals a bug in the container or the invoker, never a normal failure of
    the provider. It must not be caught and retried.
    """
