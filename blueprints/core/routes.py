from __future__ import annotations
import json, logging, re, time
from datetime import datetime, timezone
from uuid import uuid4

from flask import current_app, g, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.wrappers.response import Response

from extensions import db

from . import bp
from . import errors  # noqa: F401  registers the app-wide error handlers
from .ratelimit import client_ip, limiters_for
from .responses import error, success, timestamp

_STARTED = time.monotonic()

SUSPICIOUS_PATTERNS = (
    re.compile(r"\.\."),
    re.compile(r"<script", re.I),
    re.compile(r"union.*select", re.I),
    re.compile(r"javascript:", re.I),
)
NO_STORE_PREFIXES = ("/api/auth", "/api/user", "/api/admin")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in ("event", "path", "method", "status", "duration_ms", "request_id", "ip", "user_agent",
                    "curriculum_id"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _setup_structured_logging(app):
    logger = app.logger
    has_json = any(
        isinstance(h, logging.StreamHandler)
        and isinstance(getattr(h, "formatter", None), JSONFormatter)
        for h in logger.handlers
    )
    if not has_json:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)


def _flag_suspicious():
    probes = (
        request.full_path,
        request.get_data(as_text=True) or "",
        request.headers.get("User-Agent", ""),
    )
    if any(p.search(value) for p in SUSPICIOUS_PATTERNS for value in probes):
        current_app.logger.warning("suspicious request detected", extra={
            "event": "security",
            "path": request.path,
            "method": request.method,
            "ip": client_ip(),
            "user_agent": request.headers.get("User-Agent", ""),
            "request_id": g.request_id,
        })


def _check_rate_limits():
    if not current_app.config.get("RATELIMIT_ENABLED", True):
        return None
    key = client_ip()
    for limiter in limiters_for(current_app):
        if not limiter.applies_to(request.path):
            continue
        if limiter.exceeded(key):
            current_app.logger.warning("rate limit exceeded", extra={
                "event": "rate_limit", "path": request.path, "ip": key, "request_id": g.request_id,
            })
            resp, status = error(limiter.code, limiter.message, 429)
            resp.headers["Retry-After"] = str(limiter.retry_after(key))
            return resp, status
        if not limiter.failures_only:
            limiter.hit(key)
    return None


@bp.before_app_request
def _start_request():
    g._req_start = time.perf_counter()
    g.request_id = request.headers.get("X-Request-ID") or uuid4().hex
    _flag_suspicious()
    return _check_rate_limits()


@bp.after_app_request
def _finish_request(response: Response):
    if current_app.config.get("RATELIMIT_ENABLED", True) and response.status_code >= 400:
        for limiter in limiters_for(current_app):
            if limiter.failures_only and limiter.applies_to(request.path) and response.status_code != 429:
                limiter.hit(client_ip())

    response.headers["X-Request-ID"] = getattr(g, "request_id", "")
    if request.path.startswith("/api"):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
    if request.path.startswith(NO_STORE_PREFIXES):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, proxy-revalidate"
        response.headers["Pragma"] = "no-cache"

    started = getattr(g, "_req_start", None)
    duration_ms = int((time.perf_counter() - started) * 1000) if started is not None else None
    extra = {
        "event": "http_request",
        "path": request.path,
        "method": request.method,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "request_id": getattr(g, "request_id", None),
    }
    logger = current_app.logger
    if duration_ms is not None and duration_ms > current_app.config.get("SLOW_REQUEST_MS", 1000):
        logger.warning("slow request", extra=extra)
    else:
        logger.info("request handled", extra=extra)
    if request.path.endswith("/auth/login") and response.status_code == 401:
        logger.warning("failed login attempt", extra={
            "event": "security", "path": request.path, "ip": client_ip(), "request_id": extra["request_id"],
        })
    return response


@bp.record_once
def _on_register(state):
    _setup_structured_logging(state.app)


def _database_ok() -> tuple[bool, int]:
    started = time.perf_counter()
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("database health check failed", extra={"event": "health"})
        return False, int((time.perf_counter() - started) * 1000)
    return True, int((time.perf_counter() - started) * 1000)


def _health_body(status: str) -> dict:
    return {
        "status": status,
        "timestamp": timestamp(),
        "uptime": round(time.monotonic() - _STARTED, 3),
        "version": current_app.config.get("APP_VERSION", "1.0.0"),
        "environment": current_app.config.get("ENV_NAME", "development"),
    }


@bp.get("/health")
def health():
    return jsonify(_health_body("healthy"))


@bp.get("/health/detailed")
def health_detailed():
    ok, latency = _database_ok()
    body = _health_body("healthy" if ok else "unhealthy")
    body["database"] = {"status": "connected" if ok else "disconnected", "responseTime": latency}
    return jsonify(body), 200 if ok else 503


@bp.get("/ready")
def ready():
    ok, _ = _database_ok()
    if ok:
        return jsonify({"status": "ready", "timestamp": timestamp()})
    return jsonify({"status": "not ready", "timestamp": timestamp()}), 503


@bp.get("/live")
def live():
    return jsonify({"status": "alive"})


@bp.get("/api")
def api_banner():
    return success({
        "message": "Shelf Taught API Server",
        "version": current_app.config.get("APP_VERSION", "1.0.0"),
    })
