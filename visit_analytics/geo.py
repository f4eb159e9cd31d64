import logging
import os
from typing import NamedTuple
from urllib.parse import quote

import geoip2.database
import geoip2.errors
import httpx
import maxminddb

from .addresses import LOCAL_SENTINEL, LOOPBACK_ADDRESSES

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


class GeoInfo(NamedTuple):
    country: str
    city: str


LOCAL_GEO = GeoInfo("Local", "Development")
UNKNOWN_GEO = GeoInfo(UNKNOWN, UNKNOWN)


def is_local_address(ip: str | None) -> bool:
    return not ip or ip == LOCAL_SENTINEL or ip in LOOPBACK_ADDRESSES


class GeoLookupClient:
    """
    Country/city lookup against an ipapi.co style HTTP service:
    GET {base_url}/{ip}/json/ -> {"country_name": ..., "city": ...}

    lookup() never raises. Every failure resolves to Unknown/Unknown.
    """

    def __init__(self, base_url="https://ipapi.co", timeout=3.0, transport=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # tests hand in an httpx.MockTransport
        self.transport = transport

    def url_for(self, ip: str) -> str:
        return f"{self.base_url}/{quote(ip, safe=':')}/json/"

    async def lookup(self, ip: str | None) -> GeoInfo:
        if is_local_address(ip):
            return LOCAL_GEO

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(self.url_for(ip))
            data = resp.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.warning("geo lookup failed for %s: %s", ip, e)
            return UNKNOWN_GEO

        if not isinstance(data, dict):
            logger.warning("geo lookup for %s returned %s, expected an object", ip, type(data).__name__)
            return UNKNOWN_GEO

        return GeoInfo(
            country=data.get("country_name") or UNKNOWN,
            city=data.get("city") or UNKNOWN,
        )


class LocalGeoLookup:
    """
    Same contract as GeoLookupClient, answered from a local MaxMind
    City database instead of the network.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._reader = None

    def get_reader(self):
        if self._reader is None:
            self._reader = geoip2.database.Reader(self.db_path)
        return self._reader

    async def lookup(self, ip: str | None) -> GeoInfo:
        if is_local_address(ip):
            return LOCAL_GEO
        try:
            resp = self.get_reader().city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return UNKNOWN_GEO
        except (geoip2.errors.GeoIP2Error, maxminddb.InvalidDatabaseError, OSError, TypeError) as e:
            # unreadable file, or a Country database that has no city records
            logger.warning("local geo lookup failed for %s: %s", ip, e)
            return UNKNOWN_GEO
        return GeoInfo(
            country=resp.country.name or resp.registered_country.name or UNKNOWN,
            city=resp.city.name or UNKNOWN,
        )


def build_geo_lookup(config):
    """
    Pick the geo backend from app config: a local database when
    GEOIP_DB_PATH exists, the HTTP provider otherwise.
    """
    db_path = config.get("GEOIP_DB_PATH")
    if db_path and os.path.exists(db_path):
        logger.info("using local geo database %s", db_path)
        return LocalGeoLookup(db_path)
    return GeoLookupClient(
        base_url=config.get("GEO_LOOKUP_URL", "https://ipapi.co"),
        timeout=config.get("GEO_LOOKUP_TIMEOUT", 3.0),
    )
