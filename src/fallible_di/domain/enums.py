from enum import Enum


class Lifetime(str, Enum):
    """Defines the scope a bound provider is cached in.

    Attributes:
        SINGLETON: Single instance shared across entire container tree.
        TRANSIENT: Provider invoked on each resolution.
        SCOPED: Single instance per scope (e.g., per HTTP request).
    """

    TRANSIENT = "transient"
    SCOPED = "scoped"
    SINGLETON = "singleton"

    def __str__(self) -> str:
        return self.value


class FailureKind(str, Enum):
    """Classification of a failure raised by, or declared on, a provider method.

    Attributes:
        DECLARED: Part of the fallible provider's contract; propagated through its failure channel.
        UNCHECKED: Runtime-class failure, exempt from contract checks and propagated verbatim.
        FATAL: The invocation machinery broke an invariant registration should have guaranteed.
    """

    DECLARED = "declared"
    UNCHECKED = "unchecked"
    FATAL = "fatal"

    def __str__(self) -> str:
        return self.value
