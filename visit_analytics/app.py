import logging
from datetime import datetime
from types import SimpleNamespace

from bson import ObjectId
from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

from . import config
from .broadcast import NullBroadcaster
from .geo import build_geo_lookup
from .recorder import VisitRecorder
from .routes import bp
from .stats import StatsAggregator
from .store import VisitStore

logger = logging.getLogger(__name__)


class AnalyticsJSONProvider(DefaultJSONProvider):
    """
    ISO 8601 dates and hex ObjectIds instead of Flask's HTTP-date default.
    """

    @staticmethod
    def default(o):
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, ObjectId):
            return str(o)
        return DefaultJSONProvider.default(o)


def setup_logging(app):
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for noisy in ("werkzeug", "httpx", "pymongo"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def pick_cors_origin(request_origin: str | None, allowed_origins) -> str | None:
    """
    Return the origin to echo back if it is on the allowlist.
    """
    if not request_origin:
        return None
    if "*" in allowed_origins:
        return request_origin
    for allowed in allowed_origins:
        if request_origin == allowed:
            return allowed
    return None


def create_app(test_config=None, *, store=None, geo=None, broadcaster=None, clock=None):
    """
    Build the Flask app. Collaborators can be handed in directly;
    otherwise they are built from config (MongoDB store, geo backend,
    no live channel).
    """
    app = Flask(__name__)
    app.json = AnalyticsJSONProvider(app)
    app.config.from_mapping(config.defaults())
    if test_config:
        app.config.update(test_config)

    setup_logging(app)

    if store is None:
        store = VisitStore.from_uri(
            app.config["MONGODB_URI"],
            app.config["MONGODB_DB"],
            app.config["ANALYTICS_COLLECTION"],
        )
    store.ensure_indexes()

    if geo is None:
        geo = build_geo_lookup(app.config)

    app.extensions["visit_analytics"] = SimpleNamespace(
        store=store,
        recorder=VisitRecorder(store, geo, broadcaster or NullBroadcaster()),
        stats=StatsAggregator(store, clock=clock),
    )

    app.register_blueprint(bp)

    @app.after_request
    def add_cors_headers(resp):
        """
        Attach CORS headers if this was a cross-origin call from an allowed Origin.
        """
        origin = pick_cors_origin(request.headers.get("Origin"), app.config["CORS_ALLOW_ORIGINS"])

        if origin:
            req_method = request.headers.get("Access-Control-Request-Method", "GET,POST,OPTIONS")
            req_headers = request.headers.get("Access-Control-Request-Headers", "Content-Type, Authorization")

            resp.headers["Access-Control-Allow-Origin"] = origin
            resp.headers["Vary"] = "Origin"
            resp.headers["Access-Control-Allow-Methods"] = req_method
            resp.headers["Access-Control-Allow-Headers"] = req_headers
            resp.headers["Access-Control-Max-Age"] = "600"
        return resp

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok", "message": "The Sessions API is running"})

    logger.info("visit analytics ready (collection %s)", app.config["ANALYTICS_COLLECTION"])
    return app
