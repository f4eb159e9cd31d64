import hmac
import logging
from datetime import datetime
from functools import wraps

from flask import Blueprint, abort, current_app, jsonify, request
from pymongo.errors import PyMongoError

bp = Blueprint("analytics", __name__, url_prefix="/api/analytics")

logger = logging.getLogger(__name__)

DEFAULT_TREND_DAYS = 7


def services():
    return current_app.extensions["visit_analytics"]


# -----------------------------------------------------------------------------
# Auth
# -----------------------------------------------------------------------------
def given_token() -> str:
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip()
    return request.args.get("token") or request.headers.get("X-Admin-Token") or ""


def token_ok() -> bool:
    """
    Constant-time compare against the dashboard token. No configured
    token means nobody gets in.
    """
    token = current_app.config.get("DASH_TOKEN") or ""
    given = given_token()
    return bool(token) and hmac.compare_digest(given.encode("utf-8"), token.encode("utf-8"))


def dashboard_token_required(view):
    @wraps(view)
    async def wrapped(*args, **kwargs):
        if not token_ok():
            abort(403, description="Access denied")
        return await view(*args, **kwargs)
    return wrapped


# -----------------------------------------------------------------------------
# Query params
# -----------------------------------------------------------------------------
def parse_date_param(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        abort(400, description=f"{name} must be an ISO 8601 date")


def parse_days_param():
    raw = request.args.get("days")
    if raw is None or raw == "":
        return DEFAULT_TREND_DAYS
    try:
        days = int(raw)
    except ValueError:
        days = 0
    if days < 1:
        abort(400, description="days must be a positive integer")
    return days


# -----------------------------------------------------------------------------
# Ingest
# -----------------------------------------------------------------------------
@bp.route("/track", methods=["POST", "OPTIONS"])
async def track():
    """
    Record one page visit. Always answers 200; the body says whether
    the visit was stored.
    Body example:
      { "path": "/sessions", "referrer": "https://google.com",
        "language": "en-US", "screenResolution": "1920x1080",
        "sessionId": "k3j2...", "userId": null }
    """
    if request.method == "OPTIONS":
        return ("", 200)

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}

    ok = await services().recorder.track(payload, request.headers, request.remote_addr)
    return jsonify({"success": ok}), 200


# -----------------------------------------------------------------------------
# Dashboard
# -----------------------------------------------------------------------------
@bp.route("/stats")
@dashboard_token_required
async def stats():
    start = parse_date_param("startDate")
    end = parse_date_param("endDate")
    try:
        summary = await services().stats.summary(start, end)
    except PyMongoError:
        logger.exception("Error fetching analytics")
        return jsonify({"error": "Failed to fetch analytics"}), 500
    return jsonify(summary)


@bp.route("/trends")
@dashboard_token_required
async def trends():
    days = parse_days_param()
    try:
        rows = await services().stats.trends(days)
    except PyMongoError:
        logger.exception("Error fetching trends")
        return jsonify({"error": "Failed to fetch trends"}), 500
    return jsonify(rows)
