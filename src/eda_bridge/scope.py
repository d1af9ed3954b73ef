"""Visit scopes that switch off key case conversion for a subtree."""

from __future__ import annotations

import itertools
import threading
from collections.abc import Container
from dataclasses import dataclass

from .log import get_logger

_logger = get_logger("scope")

_visit_counter = itertools.count(1)
_visit_lock = threading.Lock()


def new_visit_id(prefix: str) -> str:
    """Return a process-wide unique visit id such as ``labels-42``."""
    with _visit_lock:
        n = next(_visit_counter)
    return f"{prefix}-{n}"


@dataclass(frozen=True)
class VisitScope:
    """Traversal-local case preservation marker.

    A scope with a ``visit_id`` is preserving: keys below it pass through
    verbatim. Scopes are values; a recursive call receives the scope of its
    parent, possibly replaced by a new one, and the parent carries on with
    its own once the call returns.
    """

    visit_id: str | None = None

    @property
    def preserving(self) -> bool:
        return self.visit_id is not None

    def enter(self, name: str, preserve_names: Container[str]) -> VisitScope:
        """Return the scope to use for the child called ``name``."""
        if self.preserving or name not in preserve_names:
            return self
        scope = VisitScope(new_visit_id(name))
        _logger.debug("entering case preserving scope %s", scope.visit_id)
        return scope


ROOT_SCOPE = VisitScope()
