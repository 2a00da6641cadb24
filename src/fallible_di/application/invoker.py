"""Application layer - Provider method invocation machinery."""

import inspect
from typing import Any, Callable, Optional, Sequence

from fallible_di.domain import IInvoker, InvocationTargetError, MethodAccessError


class MethodInvoker(IInvoker):
    """Calls a provider method captured when its descriptor was built.

    Functions and other descriptors are bound to the owning instance through
    the descriptor protocol; bound methods and plain callable objects are
    called as they are. Whatever the callable raises comes back wrapped in an
    ``InvocationTargetError`` so callers can tell it apart from failures of
    the machinery itself.
    """

    def invoke(self, method: Callable[..., Any], instance: Optional[Any], args: Sequence[Any]) -> Any:
        """Invoke ``method`` against ``instance``.

        Args:
            method: The provider method.
            instance: Owning instance, or None for a free function.
            args: Positional arguments, already resolved.

        Returns:
            Whatever the method returned.

        Raises:
            MethodAccessError: If binding yields something that cannot be called.
            InvocationTargetError: If the method raised an ``Exception``.
        """
        target = self._bind(method, instance)
        if not callable(target):
            raise MethodAccessError(method, f"binding to {instance!r} produced {target!r}")

        try:
            return target(*args)
        except Exception as e:
            raise InvocationTargetError(e) from e

    @staticmethod
    def _bind(method: Callable[..., Any], instance: Optional[Any]) -> Any:
        if instance is None or inspect.ismethod(method):
            return method
        bind = getattr(type(method), "__get__", None)
        if bind is None:
            return method
        return bind(method, instance, type(instance))
