"""ORM Models — SQLAlchemy declarative models for the two telemetry sinks.

Invariants:
    - All models inherit from Base (db/base.py)
    - Table names equal RecordSink values (core/domain_types.py)

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from sitetrack.models.site_visit import SiteVisit  # noqa: F401
from sitetrack.models.system_log import SystemLog  # noqa: F401
