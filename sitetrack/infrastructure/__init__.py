"""Infrastructure Layer — storage, transport and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - Every storage/transport failure mapped to a typed error from core/errors.py

Design Decisions:
    - Identity stores and sinks implement the Protocols in core/repository_protocols.py
"""
