import re
from typing import NamedTuple

TABLET_RE = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobi))", re.IGNORECASE)
MOBILE_RE = re.compile(r"mobile|iphone|ipod|blackberry|opera mini|windows phone", re.IGNORECASE)

# Order matters: first substring hit wins.
BROWSERS = (
    ("firefox", "Firefox"),
    ("chrome", "Chrome"),
    ("safari", "Safari"),
    ("edge", "Edge"),
    ("opera", "Opera"),
)

OPERATING_SYSTEMS = (
    (("windows",), "Windows"),
    (("mac",), "macOS"),
    (("linux",), "Linux"),
    (("android",), "Android"),
    (("ios", "iphone", "ipad"), "iOS"),
)


class UserAgentInfo(NamedTuple):
    device_type: str
    browser: str
    os: str


def classify_user_agent(user_agent: str | None) -> UserAgentInfo:
    """
    Coarse device / browser / OS classification.

    Tablet is checked before mobile, so an Android UA without "mobi"
    (or anything mentioning an iPad) is a tablet even if it also says
    "Mobile" somewhere.
    """
    ua = user_agent or ""
    ua_lower = ua.lower()

    if TABLET_RE.search(ua):
        device_type = "tablet"
    elif MOBILE_RE.search(ua):
        device_type = "mobile"
    else:
        device_type = "desktop"

    browser = next((name for needle, name in BROWSERS if needle in ua_lower), "Unknown")

    os_name = "Unknown"
    for needles, name in OPERATING_SYSTEMS:
        if any(n in ua_lower for n in needles):
            os_name = name
            break

    return UserAgentInfo(device_type, browser, os_name)
