from typing import Tuple, Type

from fallible_di.domain.enums import FailureKind

# Counterparts of unchecked exceptions: programming errors no caller declares.
DEFAULT_UNCHECKED_ERROR_TYPES: Tuple[Type[BaseException], ...] = (
    RuntimeError,
    TypeError,
    AttributeError,
    LookupError,
    ArithmeticError,
    AssertionError,
)


def classify_error_type(
    error_type: Type[BaseException],
    unchecked_types: Tuple[Type[BaseException], ...] = DEFAULT_UNCHECKED_ERROR_TYPES,
) -> FailureKind:
    """Decide whether a declared error type carries a contract.

    ``BaseException`` subclasses outside ``Exception`` (``KeyboardInterrupt``,
    ``SystemExit``...) are always unchecked.

    Args:
        error_type: The error class to classify.
        unchecked_types: Base classes considered runtime-class errors.

    Returns:
        FailureKind.UNCHECKED or FailureKind.DECLARED.
    """
    if not issubclass(error_type, Exception) or issubclass(error_type, unchecked_types):
        return FailureKind.UNCHECKED
    return FailureKind.DECLARED
