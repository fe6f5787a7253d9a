from __future__ import annotations
from typing import Any

from flask import request


def sanitize(value: Any) -> Any:
    """Drop operator-looking keys ($-prefixed or dotted) and escape angle brackets in strings."""
    if isinstance(value, dict):
        return {
            key: sanitize(item)
            for key, item in value.items()
            if not (isinstance(key, str) and (key.startswith("$") or "." in key))
        }
    if isinstance(value, list):
        return [sanitize(item) for item in value]
    if isinstance(value, str):
        return value.replace("<", "&lt;").replace(">", "&gt;")
    return value


def request_payload() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    return sanitize(data)
