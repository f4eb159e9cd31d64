import asyncio
from datetime import datetime, timedelta

from .models import as_utc_naive, utcnow

TOP_N = 10
RECENT_LIMIT = 50
RECENT_FIELDS = ("path", "timestamp", "deviceType", "browser", "os", "country", "city")

# null / missing / "" sessionIds all land in the same group
SESSION_KEY = {"$ifNull": ["$sessionId", ""]}

DAY_KEY = {
    "year": {"$year": "$timestamp"},
    "month": {"$month": "$timestamp"},
    "day": {"$dayOfMonth": "$timestamp"},
}
DAY_SORT = {"_id.year": 1, "_id.month": 1, "_id.day": 1}


def date_filter(start: datetime | None = None, end: datetime | None = None) -> dict:
    """
    Inclusive timestamp range; either end may be open.
    """
    query = {}
    if start is not None or end is not None:
        query["timestamp"] = {}
        if start is not None:
            query["timestamp"]["$gte"] = as_utc_naive(start)
        if end is not None:
            query["timestamp"]["$lte"] = as_utc_naive(end)
    return query


class StatsAggregator:
    """
    Read side of the visit log. Each aggregate is a plain blocking
    store call; summary() and trends() fan them out to threads.
    """

    def __init__(self, store, clock=None):
        self.store = store
        self.clock = clock or utcnow

    def total_visits(self, query):
        return self.store.count(query)

    def unique_sessions(self, query):
        return self.store.count_groups(SESSION_KEY, query)

    def device_breakdown(self, query):
        return self.store.grouped_counts("$deviceType", query)

    def browser_breakdown(self, query):
        return self.store.grouped_counts("$browser", query)

    def country_breakdown(self, query):
        return self.store.grouped_counts("$country", query, limit=TOP_N)

    def top_pages(self, query):
        return self.store.grouped_counts("$path", query, limit=TOP_N)

    def recent_visits(self, query):
        return self.store.find_recent(query, RECENT_FIELDS, RECENT_LIMIT)

    async def summary(self, start=None, end=None) -> dict:
        """
        All dashboard aggregates for one date range. Any failing
        aggregate fails the whole summary.
        """
        query = date_filter(start, end)
        parts = {
            "totalVisits": self.total_visits,
            "uniqueSessions": self.unique_sessions,
            "deviceBreakdown": self.device_breakdown,
            "browserBreakdown": self.browser_breakdown,
            "countryBreakdown": self.country_breakdown,
            "topPages": self.top_pages,
            "recentVisits": self.recent_visits,
        }
        results = await asyncio.gather(*(asyncio.to_thread(fn, query) for fn in parts.values()))
        return dict(zip(parts.keys(), results))

    def daily_counts(self, days: int) -> list:
        try:
            since = as_utc_naive(self.clock()) - timedelta(days=days)
        except OverflowError:
            # window reaches past year 1: every record
            since = datetime.min
        rows = self.store.grouped_counts(DAY_KEY, {"timestamp": {"$gte": since}}, sort=DAY_SORT)
        return [
            {
                "year": row["_id"]["year"],
                "month": row["_id"]["month"],
                "day": row["_id"]["day"],
                "count": row["count"],
            }
            for row in rows
        ]

    async def trends(self, days: int = 7) -> list:
        if isinstance(days, bool) or not isinstance(days, int) or days < 1:
            raise ValueError("days must be a positive integer")
        return await asyncio.to_thread(self.daily_counts, days)
