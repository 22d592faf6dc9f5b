"""Services Layer — identity managers, dispatcher, tracker, logger and repository.

Invariants:
    - Services wrap core pure logic with IO through injected Protocols
    - Tracker, dispatcher and logger entry points never raise to the host

Design Decisions:
    - Explicit imports per module, no re-exports
"""
