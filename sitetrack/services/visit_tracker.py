"""Visit Tracker — host-facing activation call, one per navigation.

Invariants:
    - Excluded prefixes (default "/admin") never dispatch, regardless of dedup state
    - Navigating to an excluded path tears down (cancels) a still-pending dispatch
    - The same pathname twice in a row dispatches once; the repeat is a no-op
    - activate()/on_navigation() never raise

Design Decisions:
    - Policy filter before the deduplicator: excluded paths never touch the dedup slot
"""

import logging
from typing import Iterable

from sitetrack.core.domain_types import NavigationTarget
from sitetrack.core.navigation_dedup import (
    DEFAULT_EXCLUDED_PREFIXES, NavigationDeduplicator, is_excluded_path,
)
from sitetrack.core.repository_protocols import NavigationSource
from sitetrack.services.telemetry_dispatcher import TelemetryDispatcher

logger = logging.getLogger(__name__)


class VisitTracker:
    """Navigation source → policy filter → deduplicator → dispatcher."""

    def __init__(
        self,
        dispatcher: TelemetryDispatcher,
        navigation_source: NavigationSource | None = None,
        excluded_prefixes: Iterable[str] = DEFAULT_EXCLUDED_PREFIXES,
    ):
        self._dispatcher = dispatcher
        self._source = navigation_source
        self._excluded = tuple(excluded_prefixes)
        self._dedup = NavigationDeduplicator()

    @property
    def dispatcher(self) -> TelemetryDispatcher:
        return self._dispatcher

    def activate(self) -> bool:
        """Zero-argument activation: track the source's current location."""
        if self._source is None:
            logger.debug("No navigation source configured, activation ignored")
            return False
        try:
            target = self._source.current_location()
        except Exception as e:
            logger.debug(f"Navigation source failed: {e}")
            return False
        return self.on_navigation(target)

    def on_navigation(self, target: NavigationTarget) -> bool:
        """True when the navigation was handed to the dispatcher (track), False on skip."""
        if is_excluded_path(target.pathname, self._excluded):
            self._dispatcher.cancel_pending()
            return False
        if not self._dedup.should_track(target.pathname):
            return False
        self._dispatcher.dispatch(target)
        return True

    def reset(self) -> None:
        """Full reload: forget the last tracked path."""
        self._dedup.reset()
