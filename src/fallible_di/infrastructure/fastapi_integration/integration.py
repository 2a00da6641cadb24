import logging
from typing import Any, Awaitable, Callable, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from fallible_di.application import DIContainer
from fallible_di.domain import IContainer

logger = logging.getLogger(__name__)


def create_fastapi_dependency(container: IContainer, key: Any) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that calls the provider bound to ``key``.

    The provider is looked up once; each request calls its ``get``. Declared
    failures of the provider propagate to FastAPI, where a handler installed by
    ``add_failure_handler`` can turn them into responses.

    Args:
        container: The DI container the key is bound in.
        key: The type or binding key to provide.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> get_rates = create_fastapi_dependency(container, ExchangeRates)
        >>>
        >>> @app.get("/rates")
        >>> def rates(rates: ExchangeRates = Depends(get_rates)):
        ...     return rates.as_dict()
    """
    provider = container.get_provider(key)

    def dependency() -> Any:
        """Provide the dependency from the container."""
        return provider.get()

    return dependency


def create_scoped_dependency(key: Any) -> Callable[[Request], Any]:
    """Create a FastAPI dependency that resolves from the request-scoped container.

    Requires the ScopedContainerMiddleware to be installed.

    Args:
        key: The type or binding key to resolve from the scoped container.

    Returns:
        A callable that resolves from the request-scoped container.
    """

    def scoped_dependency(request: Request) -> Any:
        """Resolve from the request's scoped container."""
        if not hasattr(request.state, "di_container"):
            raise RuntimeError(
                "Request does not have a scoped DI container. Did you forget to add ScopedContainerMiddleware?"
            )
        scoped_container: IContainer = request.state.di_container
        return scoped_container.get_provider(key).get()

    return scoped_dependency


class ScopedContainerMiddleware(BaseHTTPMiddleware):
    """Middleware that creates a scoped DI container for each request.

    The scoped container is accessible via `request.state.di_container` and its
    scoped instances are dropped once the response is produced.

    Attributes:
        container: The parent DI container to create scopes from.
    """

    def __init__(self, app: FastAPI, container: DIContainer):
        super().__init__(app)
        self.container = container

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        scoped_container = self.container.create_scope()
        request.state.di_container = scoped_container

        try:
            return await call_next(request)
        finally:
            scoped_container.end_scope()


def add_failure_handler(app: FastAPI, failure_type: Type[BaseException], status_code: int = 503) -> None:
    """Map a provider's declared failure type to an HTTP error response.

    Args:
        app: The FastAPI application.
        failure_type: The declared failure type, typically ``Interface.declared_failure_type()``.
        status_code: Status code of the response.

    Example:
        >>> add_failure_handler(app, RatesProvider.declared_failure_type(), status_code=502)
    """

    async def handle_failure(request: Request, exc: Exception) -> JSONResponse:
        logger.warning("Provider failure while serving %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    app.add_exception_handler(failure_type, handle_failure)
