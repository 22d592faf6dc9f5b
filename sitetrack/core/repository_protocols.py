"""Boundary Protocols — contracts between core and the host application.

Invariants:
    - Core NEVER imports from services, infrastructure or api
    - Identity store access is synchronous (local, in-process); persistence is async
    - Implementations provided by the host via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
    - TelemetrySink has a single insert(): both record shapes share one write path
"""

from typing import Protocol

from sitetrack.core.domain_types import NavigationTarget, RecordSink


class IdentityStore(Protocol):
    """Durable string-keyed storage for visitor/session identity.

    Implementations may raise on unavailable storage; callers swallow it.
    """
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class NavigationSource(Protocol):
    """Reports the route the host is currently showing."""
    def current_location(self) -> NavigationTarget: ...


class PageContext(Protocol):
    """Document metadata read at dispatch time (after the scheduling delay)."""
    def page_title(self) -> str | None: ...
    def referrer(self) -> str | None: ...
    def user_agent(self) -> str: ...


class UserResolver(Protocol):
    """Returns the authenticated user id, or None for anonymous visitors."""
    async def current_user_id(self) -> str | None: ...


class TelemetrySink(Protocol):
    """Contract for visit/log persistence — implemented by infrastructure."""
    async def insert(self, sink: RecordSink, record: dict) -> None: ...
