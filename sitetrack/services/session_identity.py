"""Session Manager — session identifier with a sliding inactivity window.

Invariants:
    - absent → fresh; active (gap <= window) → same id; expired (gap > window) → fresh
    - Every call writes now as the last-activity timestamp (sliding, not fixed, expiry)
    - Store failures never propagate: the call returns a fresh in-memory id

Design Decisions:
    - Rotation rules live in core/session_window.py; this class only does the
      read-decide-write around the store
    - Identity write and timestamp write are independent (no transaction)
"""

import logging
import random

from sitetrack.core.domain_types import (
    SESSION_ID_KEY, SESSION_ID_PREFIX, SESSION_INACTIVITY_MS,
    SESSION_TIMESTAMP_KEY, Clock, SessionId,
)
from sitetrack.core.repository_protocols import IdentityStore
from sitetrack.core.session_window import (
    mint_identifier, needs_rotation, parse_timestamp,
)
from sitetrack.services.visitor_identity import system_clock

logger = logging.getLogger(__name__)


class SessionManager:
    """Reads/rotates/refreshes the session id through an injected IdentityStore."""

    def __init__(
        self,
        store: IdentityStore,
        clock: Clock = system_clock,
        inactivity_window_ms: int = SESSION_INACTIVITY_MS,
        rng: random.Random | None = None,
    ):
        self._store = store
        self._clock = clock
        self._window_ms = inactivity_window_ms
        self._rng = rng

    def get_or_create_session_id(self) -> SessionId:
        now = self._clock()
        try:
            session_id = self._store.get(SESSION_ID_KEY)
            last_activity = parse_timestamp(self._store.get(SESSION_TIMESTAMP_KEY))

            if needs_rotation(session_id, last_activity, now, self._window_ms):
                session_id = mint_identifier(SESSION_ID_PREFIX, now, self._rng)
                self._store.set(SESSION_ID_KEY, session_id)
                logger.debug("Session rotated", extra={"session_id": session_id})

            self._store.set(SESSION_TIMESTAMP_KEY, str(now))
            return SessionId(session_id)
        except Exception as e:
            logger.debug(f"Session store unavailable, using ephemeral id: {e}")
            return SessionId(mint_identifier(SESSION_ID_PREFIX, now, self._rng))
