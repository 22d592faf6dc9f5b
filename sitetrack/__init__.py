"""sitetrack — visitor identity, session rotation and fail-silent telemetry dispatch.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
