import os

# -----------------------------------------------------------------------------
# Config
# -----------------------------------------------------------------------------
MONGODB_URI = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.environ.get("MONGODB_DB", "sessions")
ANALYTICS_COLLECTION = os.environ.get("ANALYTICS_COLLECTION", "analytics")

# Empty token means the stats/trends endpoints deny everyone.
DASH_TOKEN = os.environ.get("ANALYTICS_DASH_TOKEN", "")

GEO_LOOKUP_URL = os.environ.get("GEO_LOOKUP_URL", "https://ipapi.co")
GEO_LOOKUP_TIMEOUT = float(os.environ.get("GEO_LOOKUP_TIMEOUT", "3.0"))
GEOIP_DB_PATH = os.environ.get("GEOIP_DB_PATH", "")

CORS_ALLOW_ORIGINS = os.environ.get("CORS_ALLOW_ORIGINS", "*").split(",")
CORS_ALLOW_ORIGINS = [o.strip() for o in CORS_ALLOW_ORIGINS if o.strip()]

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
PORT = int(os.environ.get("PORT", "3003"))


def defaults():
    """
    Settings as a mapping suitable for app.config.
    """
    return {
        "MONGODB_URI": MONGODB_URI,
        "MONGODB_DB": MONGODB_DB,
        "ANALYTICS_COLLECTION": ANALYTICS_COLLECTION,
        "DASH_TOKEN": DASH_TOKEN,
        "GEO_LOOKUP_URL": GEO_LOOKUP_URL,
        "GEO_LOOKUP_TIMEOUT": GEO_LOOKUP_TIMEOUT,
        "GEOIP_DB_PATH": GEOIP_DB_PATH,
        "CORS_ALLOW_ORIGINS": CORS_ALLOW_ORIGINS,
        "LOG_LEVEL": LOG_LEVEL,
    }
