"""Application layer - Configuration diagnostics accumulator."""

import logging
from typing import Any, Iterator, List, Optional, Tuple

from fallible_di.domain import Diagnostic

logger = logging.getLogger(__name__)


class Diagnostics:
    """Append-only accumulator of configuration problems.

    One instance is created by the root container and threaded through every
    scope and private container built from it, so that all problems found
    during a configuration pass are reported together.

    Attributes:
        _entries: Diagnostics recorded so far, shared between views.
        _source: Source stamped on entries appended through this view.
    """

    def __init__(self, source: Optional[str] = None, entries: Optional[List[Diagnostic]] = None) -> None:
        self._entries: List[Diagnostic] = entries if entries is not None else []
        self._source = source

    def add(self, template: str, *args: Any, source: Optional[str] = None) -> Diagnostic:
        """Record a diagnostic.

        Args:
            template: ``%``-style message template.
            *args: Values interpolated into the template.
            source: Declaration site; defaults to the source of this view.

        Returns:
            The recorded diagnostic.
        """
        diagnostic = Diagnostic(template=template, args=args, source=source or self._source)
        self._entries.append(diagnostic)
        logger.debug("Recorded configuration diagnostic: %s", diagnostic.message)
        return diagnostic

    def with_source(self, source: Optional[str]) -> "Diagnostics":
        """Return a view appending to the same entries, stamped with ``source``."""
        return Diagnostics(source=source, entries=self._entries)

    @property
    def entries(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
