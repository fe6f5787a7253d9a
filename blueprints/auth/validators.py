from __future__ import annotations
import re
from typing import Any, Dict

from errors import ValidationError

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PASSWORD_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z\d@$!%*#?&]{8,}$")

PASSWORD_RULE = "Password must be at least 8 characters long and contain at least one letter and one number"


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.fullmatch(email))


def is_valid_password(password: str) -> bool:
    return bool(PASSWORD_RE.fullmatch(password))


def is_valid_name(name: str) -> bool:
    return 2 <= len(name.strip()) <= 50


def _present(data: Dict[str, Any], key: str) -> bool:
    value = data.get(key)
    return isinstance(value, str) and value != ""


def validate_login_request(data: Dict[str, Any]) -> Dict[str, str]:
    errors = []
    if not _present(data, "email"):
        errors.append("Email is required")
    elif not is_valid_email(data["email"]):
        errors.append("Invalid email format")
    if not _present(data, "password"):
        errors.append("Password is required")
    if errors:
        raise ValidationError("Validation failed", errors)
    return {"email": data["email"].strip().lower(), "password": data["password"]}


def validate_register_request(data: Dict[str, Any]) -> Dict[str, str]:
    errors = []
    if not _present(data, "email"):
        errors.append("Email is required")
    elif not is_valid_email(data["email"]):
        errors.append("Invalid email format")

    if not _present(data, "password"):
        errors.append("Password is required")
    elif not is_valid_password(data["password"]):
        errors.append(PASSWORD_RULE)

    for key, label in (("firstName", "First name"), ("lastName", "Last name")):
        if not _present(data, key):
            errors.append(f"{label} is required")
        elif not is_valid_name(data[key]):
            errors.append(f"{label} must be between 2 and 50 characters")

    if errors:
        raise ValidationError("Validation failed", errors)
    return {
        "email": data["email"].strip().lower(),
        "password": data["password"],
        "first_name": data["firstName"].strip(),
        "last_name": data["lastName"].strip(),
    }
