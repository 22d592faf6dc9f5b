"""API Layer — FastAPI routers and error handlers for the ingest/reporting backend.

Invariants:
    - Routes delegate to services/ and core/; no business logic in handlers
"""
