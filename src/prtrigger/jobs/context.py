"""Elevated access context for one dispatch.

Reading job configuration and asking the API for permissions happens with
rights the webhook sender does not have. Instead of switching a
process-wide identity, the engine opens an ``ElevatedContext`` for one
dispatch call and passes it explicitly to the job matcher and the
permission oracle. The context is revoked when the dispatch ends.
"""

from __future__ import annotations

import itertools
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

_counter = itertools.count(1)


class ContextRevokedError(RuntimeError):
    """Raised when an elevated context is used after its dispatch ended."""


@dataclass
class ElevatedContext:
    """Token granting registry and oracle access for a single dispatch."""

    scope: str
    serial: int = field(default_factory=lambda: next(_counter))
    _active: bool = field(default=True, repr=False)

    @property
    def active(self) -> bool:
        """Check whether the context may still be used."""
        return self._active

    def require(self) -> None:
        """Fail if the context was revoked.

        Raises:
            ContextRevokedError: If the owning dispatch has finished.
        """
        if not self._active:
            msg = f"Elevated context {self.serial} ({self.scope}) used after revocation"
            raise ContextRevokedError(msg)

    def revoke(self) -> None:
        """Revoke the context."""
        self._active = False


@contextmanager
def elevated_context(scope: str) -> Iterator[ElevatedContext]:
    """Open an elevated context, revoking it on exit.

    Args:
        scope: What the context is for, used in logs.

    Yields:
        The active context.
    """
    context = ElevatedContext(scope=scope)
    logger.debug("Opened elevated context %d for %s", context.serial, scope)
    try:
        yield context
    finally:
        context.revoke()
        logger.debug("Revoked elevated context %d", context.serial)
