import asyncio
import logging

from .addresses import resolve_client_address
from .geo import UNKNOWN_GEO
from .models import VisitRecord
from .useragent import classify_user_agent

logger = logging.getLogger(__name__)

VISIT_EVENT = "visit"


class VisitRecorder:
    """
    Turns one tracking request into one stored VisitRecord.

    Tracking rides along with page loads, so track() reports a flag
    instead of raising: a broken store or geo provider must not break
    the page that sent the beacon.
    """

    def __init__(self, store, geo, broadcaster):
        if store is None or geo is None or broadcaster is None:
            raise TypeError("VisitRecorder needs a store, a geo lookup and a broadcaster")
        self.store = store
        self.geo = geo
        self.broadcaster = broadcaster

    async def track(self, payload, headers, peer_address=None) -> bool:
        try:
            ip = resolve_client_address(headers, peer_address)
            user_agent = headers.get("User-Agent") or headers.get("user-agent") or ""
            ua = classify_user_agent(user_agent)
            geo = await self.lookup_geo(ip)

            record = VisitRecord.build(
                payload,
                userAgent=user_agent,
                deviceType=ua.device_type,
                browser=ua.browser,
                os=ua.os,
                ip=ip,
                country=geo.country,
                city=geo.city,
            )
            await asyncio.to_thread(self.store.insert, record.to_document())
        except Exception:
            logger.exception("analytics tracking failed")
            return False

        self.announce(record)
        return True

    async def lookup_geo(self, ip):
        """
        Geo is enrichment only: whatever the backend does, the visit
        is still stored, with Unknown location.
        """
        try:
            return await self.geo.lookup(ip)
        except Exception:
            logger.exception("geo lookup raised for %s", ip)
            return UNKNOWN_GEO

    def announce(self, record):
        """
        Push the new visit to live dashboards. The record is already
        stored, so a dead channel only costs the live update.
        """
        try:
            self.broadcaster.emit(VISIT_EVENT, {
                "path": record.path,
                "timestamp": record.timestamp.isoformat(),
                "deviceType": record.deviceType,
                "browser": record.browser,
                "os": record.os,
                "country": record.country,
                "city": record.city,
            })
        except Exception:
            logger.exception("visit broadcast failed")
