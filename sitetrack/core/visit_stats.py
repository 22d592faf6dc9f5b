"""Visit Stats — pure aggregation of site_visits rows for the reporting API.

Invariants:
    - Input rows are plain dicts (visitor_id, session_id, page_url, device_type,
      browser, referrer, created_at); no ORM objects, no IO
    - Missing device → "unknown", missing browser → "Other", missing page → "/"
    - Referrer source: "Direct" when absent, host without leading "www." when
      parseable, "Other" otherwise
    - Daily trend covers every calendar day in [start, end], empty days included

Design Decisions:
    - Counter-based breakdowns, sorted by count desc then name for stable output
"""

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable
from urllib.parse import urlparse

TIME_RANGES: dict[str, timedelta] = {
    "24h": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_TIME_RANGE = "7d"


def resolve_time_range(
    range_key: str, now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """'24h' | '7d' | '30d' → (start, end). Unknown keys fall back to 7 days."""
    end = now or datetime.now(timezone.utc)
    span = TIME_RANGES.get(range_key, TIME_RANGES[DEFAULT_TIME_RANGE])
    return end - span, end


def referrer_source(referrer: str | None) -> str:
    if not referrer:
        return "Direct"
    host = urlparse(referrer).hostname
    if not host:
        return "Other"
    return host.replace("www.", "", 1)


def _ranked(counter: Counter, key_name: str, limit: int | None = None) -> list[dict]:
    ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return [{key_name: name, "count": count} for name, count in ranked]


def _days_between(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def _daily_trend(visits: list[dict], start: datetime, end: datetime) -> list[dict]:
    by_day: dict[date, list[dict]] = {}
    for v in visits:
        created = v.get("created_at")
        if isinstance(created, datetime):
            by_day.setdefault(created.date(), []).append(v)
    return [
        {
            "date": day.isoformat(),
            "visitors": len({v["visitor_id"] for v in by_day.get(day, [])}),
            "page_views": len(by_day.get(day, [])),
        }
        for day in _days_between(start.date(), end.date())
    ]


def compute_visit_stats(
    rows: Iterable[dict[str, Any]],
    start: datetime,
    end: datetime,
    top_pages: int = 10,
    top_referrers: int = 5,
) -> dict[str, Any]:
    """Aggregate visits into dashboard stats. Pure function."""
    visits = list(rows)
    unique_visitors = len({v["visitor_id"] for v in visits})
    unique_sessions = len({v.get("session_id") for v in visits})
    page_views = len(visits)

    devices = Counter(v.get("device_type") or "unknown" for v in visits)
    browsers = Counter(v.get("browser") or "Other" for v in visits)
    pages = Counter(v.get("page_url") or "/" for v in visits)
    referrers = Counter(referrer_source(v.get("referrer")) for v in visits)

    return {
        "unique_visitors": unique_visitors,
        "unique_sessions": unique_sessions,
        "page_views": page_views,
        "avg_pages_per_session": (
            round(page_views / unique_sessions, 1) if unique_sessions else 0.0
        ),
        "device_breakdown": [
            {"name": name, "value": count} for name, count in devices.items()
        ],
        "browser_breakdown": [
            {"name": name, "value": count} for name, count in browsers.items()
        ],
        "top_pages": _ranked(pages, "page", top_pages),
        "daily_trend": _daily_trend(visits, start, end),
        "top_referrers": _ranked(referrers, "source", top_referrers),
    }


def summarize_log_levels(levels: Iterable[str]) -> dict[str, int]:
    """Level counters shown above the log list."""
    counts = Counter(levels)
    return {
        "total": sum(counts.values()),
        "errors": counts.get("error", 0),
        "warnings": counts.get("warn", 0),
        "info": counts.get("info", 0),
    }
