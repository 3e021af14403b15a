"""Predicate helpers shared by the trigger rule variants.

Patterns are full-match regular expressions evaluated case-insensitively
with ``.`` matching newlines, so ``^REBUILD$`` accepts "rebuild" but not
"please rebuild".
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prtrigger.github.events import Event, EventKind

PATTERN_FLAGS = re.IGNORECASE | re.DOTALL


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a trigger pattern with the trigger flags.

    Args:
        pattern: Regular expression source.

    Returns:
        Compiled pattern (cached).

    Raises:
        re.error: If the pattern is invalid.
    """
    return re.compile(pattern, PATTERN_FLAGS)


def validate_pattern(pattern: str) -> str:
    """Ensure ``pattern`` compiles, for use in pydantic validators."""
    try:
        compile_pattern(pattern)
    except re.error as e:
        msg = f"invalid regular expression {pattern!r}: {e}"
        raise ValueError(msg) from e
    return pattern


def full_match(pattern: str, value: str) -> bool:
    """Check whether ``value`` matches ``pattern`` in its entirety."""
    return compile_pattern(pattern).fullmatch(value) is not None


def match_kind(event: Event, kind: EventKind) -> tuple[bool, str]:
    """Check the event kind against the kind a rule handles.

    Returns:
        Tuple of (matched, reason).
    """
    if event.kind is kind:
        return True, f"event kind '{kind.value}' matches"
    return False, f"event kind '{event.kind.value}' is not '{kind.value}'"


def match_action(event: Event, expected: str) -> tuple[bool, str]:
    """Check the webhook action.

    Returns:
        Tuple of (matched, reason).
    """
    if event.action == expected:
        return True, f"action '{expected}' matches"
    return False, f"action '{event.action}' is not '{expected}'"


def match_text(pattern: str, value: str | None, *, what: str, missing_matches: bool) -> tuple[bool, str]:
    """Full-match ``value`` against ``pattern``.

    Args:
        pattern: Trigger pattern.
        value: Text from the event, possibly absent.
        what: Name of the text for the reason string.
        missing_matches: Result to report when ``value`` is None.

    Returns:
        Tuple of (matched, reason).
    """
    if value is None:
        state = "matches" if missing_matches else "does not match"
        return missing_matches, f"no {what} in event, {state}"
    if full_match(pattern, value):
        return True, f"{what} matches {pattern!r}"
    return False, f"{what} does not match {pattern!r}"
