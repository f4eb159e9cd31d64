from dataclasses import dataclass, field
from datetime import datetime, timezone

from bson import ObjectId

PATH_MAX = 500
REFERRER_MAX = 500
USER_AGENT_MAX = 512
SHORT_MAX = 100


def utcnow() -> datetime:
    """
    Naive UTC now, which is what pymongo hands back for stored dates.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _clip(value, limit):
    if value is None:
        return None
    return str(value)[:limit]


def to_object_id(value):
    """
    Soft user reference: valid 24-hex ids become ObjectIds, anything
    else is an anonymous visit.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


@dataclass(frozen=True)
class VisitRecord:
    """
    One page view. Built once by the recorder, never updated.
    """

    path: str
    timestamp: datetime = field(default_factory=utcnow)
    userAgent: str | None = None
    deviceType: str | None = None
    browser: str | None = None
    os: str | None = None
    ip: str | None = None
    country: str | None = None
    city: str | None = None
    referrer: str | None = None
    language: str | None = None
    screenResolution: str | None = None
    sessionId: str | None = None
    userId: ObjectId | None = None

    def __post_init__(self):
        if not self.path or not str(self.path).strip():
            raise ValueError("path is required")

    @classmethod
    def build(cls, payload, **derived):
        """
        Record from a client payload plus server-derived fields
        (userAgent, deviceType, browser, os, ip, country, city).
        """
        path = payload.get("path")
        return cls(
            path=_clip(path, PATH_MAX) if path else path,
            referrer=_clip(payload.get("referrer"), REFERRER_MAX),
            language=_clip(payload.get("language"), SHORT_MAX),
            screenResolution=_clip(payload.get("screenResolution"), SHORT_MAX),
            sessionId=_clip(payload.get("sessionId"), SHORT_MAX),
            userId=to_object_id(payload.get("userId")),
            userAgent=_clip(derived.pop("userAgent", None), USER_AGENT_MAX),
            **{k: _clip(v, SHORT_MAX) for k, v in derived.items()},
        )

    def to_document(self, created_at: datetime | None = None) -> dict:
        doc = {
            "path": self.path,
            "timestamp": as_utc_naive(self.timestamp),
            "userAgent": self.userAgent,
            "deviceType": self.deviceType,
            "browser": self.browser,
            "os": self.os,
            "ip": self.ip,
            "country": self.country,
            "city": self.city,
            "referrer": self.referrer,
            "language": self.language,
            "screenResolution": self.screenResolution,
            "sessionId": self.sessionId,
            "userId": self.userId,
        }
        doc["createdAt"] = created_at or utcnow()
        return doc
