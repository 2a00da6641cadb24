from typing import Any, Callable, Hashable, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from fallible_di.domain.enums import Lifetime


def describe(value: Any) -> str:
    """Render types by qualified name and everything else with ``str``."""
    if isinstance(value, type):
        module = value.__module__
        if module == "builtins":
            return value.__qualname__
        return f"{module}.{value.__qualname__}"
    return str(value)


class BindingKey(BaseModel):
    """Value object identifying a slot in the container.

    Attributes:
        dependency_type: The type produced by whatever is bound to the slot.
        qualifier: Optional discriminator, e.g. a name or a marker class.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    dependency_type: Any = Field(..., description="The type provided through this key.")
    qualifier: Optional[Hashable] = Field(default=None, description="Optional discriminating qualifier.")

    @classmethod
    def of(cls, value: Any, qualifier: Optional[Hashable] = None) -> "BindingKey":
        """Normalize a bare type (or an existing key) into a BindingKey."""
        if isinstance(value, BindingKey):
            if qualifier is None or qualifier == value.qualifier:
                return value
            return value.model_copy(update={"qualifier": qualifier})
        return cls(dependency_type=value, qualifier=qualifier)

    def with_qualifier(self, qualifier: Hashable) -> "BindingKey":
        return self.model_copy(update={"qualifier": qualifier})

    def __str__(self) -> str:
        name = getattr(self.dependency_type, "__qualname__", None) or repr(self.dependency_type)
        if self.qualifier is None:
            return name
        qualifier = self.qualifier.__qualname__ if isinstance(self.qualifier, type) else repr(self.qualifier)
        return f"{name}[{qualifier}]"


class Dependency(BaseModel):
    """A single injection point of a provider method.

    Attributes:
        key: The binding key the parameter is resolved from.
        parameter_index: Position of the parameter in the provider method signature.
    """

    model_config = ConfigDict(frozen=True)

    key: BindingKey
    parameter_index: int = Field(..., ge=0)


class Diagnostic(BaseModel):
    """One configuration problem, recorded instead of raised.

    Attributes:
        template: ``%``-style message template.
        args: Arguments interpolated into the template; types render by qualified name.
        source: Where the offending binding was declared, if known.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    template: str
    args: Tuple[Any, ...] = ()
    source: Optional[str] = None

    @property
    def message(self) -> str:
        return self.template % tuple(describe(arg) for arg in self.args)

    def __str__(self) -> str:
        if self.source:
            return f"{self.message}\n     at {self.source}"
        return self.message


class Registration(BaseModel):
    """Value object representing what backs a binding key.

    Attributes:
        key: The binding key being registered.
        builder: Factory function that receives the resolving container and returns an instance.
        lifetime: How long the produced instance should live.
        interface: The fallible provider interface the key is exposed through.
        source: Where the registration came from, for diagnostics.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: BindingKey = Field(..., description="The binding key to be registered.")
    builder: Callable[[Any], Any] = Field(..., description="The builder function to create an instance.")
    lifetime: Lifetime = Field(..., description="The lifetime of the registered dependency.")
    interface: Optional[Type] = Field(default=None, description="Fallible provider interface for the key.")
    source: Optional[str] = Field(default=None, description="Where the binding was declared.")


class DependencyMetadata(BaseModel):
    """Tracks registration details and usage.

    Attributes:
        registration: The original registration configuration.
        resolution_count: Number of times this dependency has been resolved.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    registration: Registration = Field(..., description="The registration details of the dependency.")
    resolution_count: int = Field(
        default=0,
        description="Number of times this dependency has been resolved.",
    )


class ContainerSettings(BaseModel):
    """Container-wide configuration.

    Attributes:
        default_lifetime: Scope applied to bindings that do not name one.
        raise_on_diagnostics: Whether ``finalize`` raises when diagnostics were recorded.
    """

    model_config = ConfigDict(frozen=True)

    default_lifetime: Lifetime = Lifetime.TRANSIENT
    raise_on_diagnostics: bool = True
