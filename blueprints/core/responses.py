from __future__ import annotations
import math
from datetime import datetime, timezone
from typing import Any, Optional

from flask import jsonify
from werkzeug.routing import IntegerConverter
from werkzeug.routing import ValidationError as RouteMismatch

# largest value a 64-bit INTEGER column can hold
MAX_DB_INT = 2**63 - 1


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success(data: Any = None, message: Optional[str] = None, status: int = 200,
            pagination: Optional[dict] = None):
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    body["timestamp"] = timestamp()
    if pagination is not None:
        body["pagination"] = pagination
    return jsonify(body), status


def created(data: Any = None, message: Optional[str] = None):
    return success(data, message, 201)


def error_payload(code: str, message: str, details: Any = None) -> dict:
    error: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error, "timestamp": timestamp()}


def error(code: str, message: str, status: int, details: Any = None):
    return jsonify(error_payload(code, message, details)), status


def page_params(args, default_limit: int = 10, max_limit: int = 50) -> tuple[int, int]:
    """page >= 1 and limit in [1, max_limit]; zero or junk falls back to the default."""
    page = max(1, int_or_zero(args.get("page")) or 1)
    # keep the row offset inside the integer range
    page = min(page, MAX_DB_INT // max_limit)
    limit = min(max_limit, max(1, int_or_zero(args.get("limit")) or default_limit))
    return page, limit


def int_or_zero(raw) -> int:
    # leading-digit parse: "12abc" -> 12, "abc" -> 0
    if raw is None:
        return 0
    text = str(raw).strip()
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for ch in text:
        if ch not in "0123456789":
            break
        digits += ch
    if not digits:
        return 0
    digits = digits.lstrip("0") or "0"
    value = MAX_DB_INT if len(digits) > len(str(MAX_DB_INT)) else min(int(digits), MAX_DB_INT)
    return sign * value


def float_or_none(raw) -> Optional[float]:
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def multi_arg(args, name: str, split: bool = True) -> list[str]:
    """Repeated (?a=1&a=2) and, with split, comma separated (?a=1,2) values; blanks dropped."""
    values: list[str] = []
    for raw in args.getlist(name):
        parts = raw.split(",") if split else [raw]
        values.extend(part.strip() for part in parts)
    return [v for v in values if v]


def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit


class DbIdConverter(IntegerConverter):
    """`<id:...>` URL segment: an integer that fits a database key, otherwise no match."""

    def __init__(self, map, **kwargs):
        kwargs.setdefault("max", MAX_DB_INT)
        super().__init__(map, **kwargs)

    def to_python(self, value: str) -> int:
        if len(value.lstrip("0")) > len(str(MAX_DB_INT)):
            raise RouteMismatch()
        return super().to_python(value)
