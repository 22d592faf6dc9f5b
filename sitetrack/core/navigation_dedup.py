"""Navigation Deduplicator — one tracking event per navigation target.

Invariants:
    - should_track(t) is False and leaves state untouched when t equals the last target
    - Otherwise t becomes the last target and should_track returns True
    - Excluded prefixes are a policy filter applied before the deduplicator is consulted

Design Decisions:
    - Single mutable slot, scoped to one tracker (one mount lifecycle); reset() models a reload
"""

from dataclasses import dataclass
from typing import Iterable

DEFAULT_EXCLUDED_PREFIXES: tuple[str, ...] = ("/admin",)


@dataclass
class NavigationDeduplicator:
    """Per-tracker dedup state — pure dataclass, no IO."""

    last_target: str | None = None

    def should_track(self, target: str) -> bool:
        if target == self.last_target:
            return False
        self.last_target = target
        return True

    def reset(self) -> None:
        self.last_target = None


def is_excluded_path(pathname: str, excluded_prefixes: Iterable[str]) -> bool:
    """True for routes that must never produce a visit (administrative areas)."""
    return any(pathname.startswith(prefix) for prefix in excluded_prefixes)
