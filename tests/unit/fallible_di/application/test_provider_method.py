"""Unit tests for FallibleProviderMethod."""

from abc import abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

import pytest
from pydantic import ValidationError

from fallible_di.application.container import DIContainer
from fallible_di.application.provider_method import FallibleProviderMethod
from fallible_di.domain import (
    BindingKey,
    Dependency,
    FailureKind,
    FallibleProvider,
    FatalProvisionError,
    IInvoker,
    InvocationTargetError,
    Lifetime,
    MethodAccessError,
)
from fallible_di.infrastructure.testing import CountingResolver, StaticResolver

T = TypeVar("T")


class RemoteError(Exception):
    pass


class TimeoutRemoteError(RemoteError):
    pass


class ParseError(Exception):
    pass


class QuotaError(Exception):
    pass


class RemoteProvider(FallibleProvider[T, RemoteError]):
    pass


class OpenProvider(FallibleProvider):
    pass


E = TypeVar("E", bound=BaseException)


class BaseProvider(FallibleProvider[T, E]):
    pass


class LayeredRemoteProvider(BaseProvider[T, RemoteError]):
    pass


class UnreachableInvoker(IInvoker):
    """Invoker reporting that the method cannot be accessed."""

    def invoke(self, method, instance, args):
        raise MethodAccessError(method, "private")


class BrokenInvoker(IInvoker):
    """Invoker failing for a reason other than access."""

    def __init__(self, error):
        self.error = error

    def invoke(self, method, instance, args):
        raise self.error


def make_method(method, **kwargs):
    kwargs.setdefault("key", BindingKey.of(str))
    kwargs.setdefault("interface", RemoteProvider)
    return FallibleProviderMethod(method=method, **kwargs)


def raising(error):
    def factory():
        raise error

    return factory


class TestConstruction:
    """Test cases for building provider method descriptors."""

    def test_descriptor_is_frozen(self):
        """Test that a descriptor cannot be modified after construction."""
        method = make_method(lambda: "value")

        with pytest.raises(ValidationError):
            method.exposed = True

    def test_rejects_non_exception_declared_types(self):
        """Test that declared error types must be exception classes."""
        with pytest.raises(ValidationError):
            make_method(lambda: "value", exception_types=(str,))

    def test_rejects_non_callable_method(self):
        """Test that the method must be callable."""
        with pytest.raises(ValidationError):
            make_method("not a function")

    def test_exposes_key_and_dependencies(self):
        """Test the introspection surface."""
        dependencies = frozenset({Dependency(key=BindingKey.of(int, "port"), parameter_index=0)})
        method = make_method(lambda port: str(port), key=BindingKey.of(str, "url"), dependencies=dependencies)

        assert method.key == BindingKey.of(str, "url")
        assert method.dependencies == dependencies

    def test_declared_failure_types_exclude_unchecked(self):
        """Test that runtime-class errors carry no contract."""
        method = make_method(lambda: "value", exception_types=(RemoteError, RuntimeError, KeyError, ParseError))
        assert method.declared_failure_types == (RemoteError, ParseError)

    def test_string_identity_names_the_method_and_location(self):
        """Test the diagnostic-friendly string identity."""

        def fetch_rates():
            return "rates"

        identity = str(make_method(fetch_rates))

        assert identity.startswith("@fallible_provides ")
        assert "fetch_rates" in identity
        assert "test_provider_method.py:" in identity


class TestInvoke:
    """Test cases for invocation and failure triage."""

    def test_success_returns_exact_value(self):
        """Test that the produced value is returned without wrapping."""
        value = object()
        assert make_method(lambda: value).invoke() is value

    def test_success_value_type_is_not_checked(self):
        """Test that the result is not validated against the key type."""
        assert make_method(lambda: 42, key=BindingKey.of(str)).invoke() == 42

    def test_declared_failure_propagates_same_object(self):
        """Test that a declared error is re-raised unmodified."""
        error = TimeoutRemoteError("timed out")
        method = make_method(raising(error), exception_types=(RemoteError,))

        with pytest.raises(TimeoutRemoteError) as exc_info:
            method.invoke()

        assert exc_info.value is error
        assert not isinstance(exc_info.value.__context__, InvocationTargetError)
        assert not isinstance(exc_info.value.__cause__, InvocationTargetError)
        assert method.classify_failure(exc_info.value) is FailureKind.DECLARED

    def test_unchecked_failure_propagates_same_object(self):
        """Test that a runtime-class error is re-raised verbatim."""
        error = RuntimeError("bug")
        method = make_method(raising(error), exception_types=(RemoteError,))

        with pytest.raises(RuntimeError) as exc_info:
            method.invoke()

        assert exc_info.value is error
        assert method.classify_failure(error) is FailureKind.UNCHECKED

    def test_declared_runtime_error_is_still_unchecked(self):
        """Test that declaring a runtime-class error does not make it a declared failure."""
        error = KeyError("missing")
        method = make_method(raising(error), exception_types=(KeyError,))

        with pytest.raises(KeyError) as exc_info:
            method.invoke()

        assert exc_info.value is error
        assert method.classify_failure(error) is FailureKind.UNCHECKED

    def test_undeclared_error_propagates_verbatim(self):
        """Test that an error matching no declared type is not re-typed."""
        error = ParseError("bad payload")
        method = make_method(raising(error), exception_types=(RemoteError,))

        with pytest.raises(ParseError) as exc_info:
            method.invoke()

        assert exc_info.value is error
        assert method.classify_failure(error) is FailureKind.UNCHECKED

    def test_base_exception_propagates(self):
        """Test that errors outside Exception are not swallowed."""
        method = make_method(raising(KeyboardInterrupt()), exception_types=(RemoteError,))

        with pytest.raises(KeyboardInterrupt):
            method.invoke()

    def test_access_failure_is_fatal(self):
        """Test that an unreachable method raises the fatal error kind."""
        method = make_method(lambda: "value", exception_types=(RemoteError,), invoker=UnreachableInvoker())

        with pytest.raises(FatalProvisionError) as exc_info:
            method.invoke()

        assert isinstance(exc_info.value, AssertionError)
        assert isinstance(exc_info.value.__cause__, MethodAccessError)
        assert method.classify_failure(exc_info.value) is FailureKind.FATAL

    def test_access_failure_is_fatal_even_when_everything_is_declared(self):
        """Test that the declared exception list cannot turn an access failure into a normal one."""
        method = make_method(
            lambda: "value",
            exception_types=(Exception, MethodAccessError, AssertionError),
            interface=OpenProvider,
            invoker=UnreachableInvoker(),
        )

        with pytest.raises(FatalProvisionError):
            method.invoke()

    def test_other_invoker_failure_propagates_verbatim(self):
        """Test that the machinery failing for other reasons surfaces unchanged."""
        error = LookupError("no such attribute")
        method = make_method(lambda: "value", invoker=BrokenInvoker(error))

        with pytest.raises(LookupError) as exc_info:
            method.invoke()

        assert exc_info.value is error

    def test_method_raising_envelope_type_is_not_unwrapped_twice(self):
        """Test that an envelope raised by the method itself is the propagated error."""
        inner = InvocationTargetError(ValueError("inner"))
        method = make_method(raising(inner))

        with pytest.raises(InvocationTargetError) as exc_info:
            method.invoke()

        assert exc_info.value is inner

    def test_invokes_against_owning_instance(self):
        """Test that an unbound method is called on its instance."""

        class RatesModule:
            def __init__(self):
                self.base = "https://rates"

            def provide_url(self, currency):
                return f"{self.base}/{currency}"

        method = make_method(
            RatesModule.provide_url,
            instance=RatesModule(),
            parameter_resolvers=(StaticResolver("EUR"),),
        )

        assert method.invoke() == "https://rates/EUR"

    def test_every_resolver_called_in_order_even_if_unused(self):
        """Test parameter resolution has no short-circuit."""
        log = []
        resolvers = (
            CountingResolver("first", value=1, call_log=log),
            CountingResolver("second", value=2, call_log=log),
            CountingResolver("third", value=3, call_log=log),
        )
        method = make_method(lambda first, second, third: first, parameter_resolvers=resolvers)

        assert method.invoke() == 1
        assert log == ["first", "second", "third"]
        assert [resolver.calls for resolver in resolvers] == [1, 1, 1]

    def test_every_resolver_called_before_failure(self):
        """Test that resolvers run even when the method then fails."""
        resolvers = (CountingResolver("a", value=1), CountingResolver("b", value=2))

        def failing(a, b):
            raise RemoteError("down")

        method = make_method(failing, parameter_resolvers=resolvers, exception_types=(RemoteError,))

        with pytest.raises(RemoteError):
            method.invoke()

        assert [resolver.calls for resolver in resolvers] == [1, 1]

    def test_resolver_failure_propagates_and_skips_invocation(self):
        """Test that a failing resolver's error is not wrapped nor triaged."""
        error = ParseError("bad config")
        calls = []

        def broken():
            raise error

        method = make_method(
            lambda a: calls.append(a),
            parameter_resolvers=(CountingResolver("broken", factory=broken),),
        )

        with pytest.raises(ParseError) as exc_info:
            method.invoke()

        assert exc_info.value is error
        assert calls == []

    def test_concurrent_invocations_are_independent(self):
        """Test that the descriptor can be invoked from several threads."""
        resolver = CountingResolver("n", factory=object)
        method = make_method(lambda value: value, parameter_resolvers=(resolver,))

        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: method.invoke(), range(20)))

        assert len({id(result) for result in results}) == 20


class TestConfigure:
    """Test cases for registration and exception contract validation."""

    def test_compatible_declared_types_produce_no_diagnostics(self):
        """Test exact, subtype and unchecked declarations."""
        container = DIContainer()
        method = make_method(
            lambda: "value",
            exception_types=(RemoteError, TimeoutRemoteError, RuntimeError, TypeError),
        )

        method.configure(container)

        assert len(container.diagnostics) == 0
        assert container.resolve(str) == "value"

    def test_incompatible_declared_type_produces_one_diagnostic(self):
        """Test that an incompatible type is reported with all three names."""
        container = DIContainer()
        method = make_method(lambda: "value", exception_types=(RemoteError, ParseError))

        method.configure(container)

        diagnostics = container.diagnostics.entries
        assert len(diagnostics) == 1
        message = diagnostics[0].message
        assert "ParseError is not compatible" in message
        assert "RemoteError" in message
        assert "RemoteProvider" in message
        assert diagnostics[0].source == str(method)

    def test_one_diagnostic_per_offending_type(self):
        """Test that each incompatible type is reported separately."""
        container = DIContainer()
        method = make_method(lambda: "value", exception_types=(ParseError, RemoteError, QuotaError, ValueError))

        method.configure(container)

        messages = [diagnostic.message for diagnostic in container.diagnostics]
        assert len(messages) == 3
        assert any("ParseError" in message for message in messages)
        assert any("QuotaError" in message for message in messages)
        assert any("ValueError" in message for message in messages)

    def test_configure_does_not_raise_on_incompatibility(self):
        """Test that validation problems are batched, and the binding still exists."""
        container = DIContainer()
        make_method(lambda: "value", exception_types=(ParseError,)).configure(container)

        assert container.resolve(str) == "value"

    def test_unchecked_types_are_exempt(self):
        """Test that runtime-class declarations are never checked."""
        container = DIContainer()
        make_method(lambda: "value", exception_types=(RuntimeError, AttributeError, ZeroDivisionError)).configure(
            container
        )

        assert len(container.diagnostics) == 0

    def test_failure_type_bound_through_intermediate_interface_is_checked(self):
        """Test that a failure type filled in by a subclass interface is enforced."""
        container = DIContainer()
        make_method(
            lambda: "value",
            interface=LayeredRemoteProvider,
            exception_types=(TimeoutRemoteError, ParseError),
        ).configure(container)

        messages = [diagnostic.message for diagnostic in container.diagnostics]
        assert len(messages) == 1
        assert "ParseError is not compatible" in messages[0]
        assert "LayeredRemoteProvider" in messages[0]

    def test_fully_generic_interface_accepts_everything(self):
        """Test that an interface without a failure type accepts every declared type."""
        container = DIContainer()
        make_method(lambda: "value", interface=OpenProvider, exception_types=(ParseError, QuotaError)).configure(
            container
        )

        assert len(container.diagnostics) == 0

    def test_qualifier_is_applied(self):
        """Test that a qualified key is bound under its qualifier only."""
        container = DIContainer()
        make_method(lambda: "primary", key=BindingKey.of(str, "primary")).configure(container)

        assert container.resolve(BindingKey.of(str, "primary")) == "primary"
        assert BindingKey.of(str) not in container.get_registry_copy()

    def test_default_scope_invokes_every_time(self):
        """Test that without a scope each resolution invokes the method."""
        container = DIContainer()
        make_method(object).configure(container)

        assert container.resolve(str) is not container.resolve(str)

    def test_scope_is_applied(self):
        """Test that a singleton scope caches the produced value."""
        container = DIContainer()
        make_method(object, scope=Lifetime.SINGLETON).configure(container)

        assert container.get_registry_copy()[BindingKey.of(str)].registration.lifetime is Lifetime.SINGLETON
        assert container.resolve(str) is container.resolve(str)

    def test_exposed_on_standard_container_is_a_diagnostic(self):
        """Test that exposure outside a private container is reported, not raised."""
        container = DIContainer()
        method = make_method(lambda: "value", exposed=True)

        method.configure(container)

        diagnostics = container.diagnostics.entries
        assert len(diagnostics) == 1
        assert "Cannot expose" in diagnostics[0].message
        assert diagnostics[0].source == str(method)

    def test_invalid_interface_is_reported(self):
        """Test that an interface that is not a FallibleProvider is reported once."""

        class NotAProvider:
            pass

        container = DIContainer()
        make_method(lambda: "value", interface=NotAProvider, exception_types=(ParseError,)).configure(container)

        messages = [diagnostic.message for diagnostic in container.diagnostics]
        assert len(messages) == 1
        assert "must be a subclass of FallibleProvider" in messages[0]

    def test_interface_with_extra_abstract_methods_is_reported(self):
        """Test that provider interfaces may only declare get()."""

        class ChattyProvider(FallibleProvider[T, RemoteError]):
            @abstractmethod
            def describe(self) -> str:
                """Describe the provided resource."""

        container = DIContainer()
        make_method(lambda: "value", interface=ChattyProvider).configure(container)

        messages = [diagnostic.message for diagnostic in container.diagnostics]
        assert len(messages) == 1
        assert "describe" in messages[0]

    def test_duplicate_binding_is_reported(self):
        """Test that binding the same key twice is a diagnostic."""
        container = DIContainer()
        make_method(lambda: "first").configure(container)
        make_method(lambda: "second").configure(container)

        messages = [diagnostic.message for diagnostic in container.diagnostics]
        assert len(messages) == 1
        assert "already configured" in messages[0]
        assert container.resolve(str) == "first"
