"""Session Window — pure identifier minting and sliding-window expiry rules.

Invariants:
    - Identifiers are <prefix>_<epoch-ms>_<1-7 base36 chars>
    - A missing or unparsable last-activity timestamp is treated as 0 (forces rotation)
    - A session expires only when now - last_activity is strictly greater than the window

Design Decisions:
    - Random source injected (random.Random): deterministic identifiers in tests
    - No IO here: services/session_identity.py wraps these around the identity store
"""

import random

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
RANDOM_SUFFIX_LENGTH = 7

_default_rng = random.Random()


def random_base36(rng: random.Random | None = None, length: int = RANDOM_SUFFIX_LENGTH) -> str:
    rng = rng or _default_rng
    return "".join(rng.choice(BASE36_ALPHABET) for _ in range(length))


def mint_identifier(prefix: str, now_ms: int, rng: random.Random | None = None) -> str:
    """Build an opaque identifier, e.g. v_1718000000000_k3j9x2a."""
    return f"{prefix}_{now_ms}_{random_base36(rng)}"


def parse_timestamp(raw: str | None) -> int:
    """Stored last-activity value → epoch ms. Missing/garbage → 0."""
    if not raw:
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        return 0


def is_session_expired(last_activity_ms: int, now_ms: int, window_ms: int) -> bool:
    return now_ms - last_activity_ms > window_ms


def needs_rotation(
    session_id: str | None, last_activity_ms: int, now_ms: int, window_ms: int,
) -> bool:
    """absent → fresh, expired → fresh; otherwise the session keeps sliding."""
    return not session_id or is_session_expired(last_activity_ms, now_ms, window_ms)
