"""Visitor Identity Manager — stable long-lived visitor identifier.

Invariants:
    - Repeated calls against a populated store return the same VisitorId
    - A missing id is minted (v_<now>_<rand>) and written back before returning
    - Store failures never propagate: the call returns a fresh in-memory id
      that is not guaranteed to be reused by the next call
"""

import logging
import random
import time

from sitetrack.core.domain_types import (
    VISITOR_ID_KEY, VISITOR_ID_PREFIX, Clock, EpochMillis, VisitorId,
)
from sitetrack.core.repository_protocols import IdentityStore
from sitetrack.core.session_window import mint_identifier

logger = logging.getLogger(__name__)


def system_clock() -> EpochMillis:
    return EpochMillis(int(time.time() * 1000))


class VisitorIdentityManager:
    """Reads/mints the visitor id through an injected IdentityStore."""

    def __init__(
        self,
        store: IdentityStore,
        clock: Clock = system_clock,
        rng: random.Random | None = None,
    ):
        self._store = store
        self._clock = clock
        self._rng = rng

    def _mint(self) -> VisitorId:
        return VisitorId(mint_identifier(VISITOR_ID_PREFIX, self._clock(), self._rng))

    def get_or_create_visitor_id(self) -> VisitorId:
        try:
            visitor_id = self._store.get(VISITOR_ID_KEY)
            if not visitor_id:
                visitor_id = self._mint()
                self._store.set(VISITOR_ID_KEY, visitor_id)
            return VisitorId(visitor_id)
        except Exception as e:
            logger.debug(f"Visitor id store unavailable, using ephemeral id: {e}")
            return self._mint()
