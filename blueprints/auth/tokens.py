"""
Password hashing and bearer tokens.

 - hash_password / verify_password: passlib bcrypt (BCRYPT_ROUNDS, 12 by default)
 - generate_token / verify_token: HS256 JWT carrying userId, email and role,
   pinned to the API issuer and client audience
 - extract_token_from_header: "Bearer <token>" only
"""
from __future__ import annotations
import re
import time
from functools import lru_cache
from typing import Any, Dict, Optional

from flask import current_app
from jose import jwt
from jose.exceptions import JWTError
from passlib.context import CryptContext

from errors import AuthenticationError

ALGORITHM = "HS256"
DEFAULT_ISSUER = "shelf-taught-api"
DEFAULT_AUDIENCE = "shelf-taught-client"
_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


@lru_cache(maxsize=4)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def _pwd_context() -> CryptContext:
    return _crypt_context(int(current_app.config.get("BCRYPT_ROUNDS", 12)))


def hash_password(password: str) -> str:
    return _pwd_context().hash(password)


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not password or not hashed:
        return False
    try:
        return _pwd_context().verify(password, hashed)
    except ValueError:
        # malformed or foreign hash in the column
        return False


def parse_expires_in(value: Any) -> int:
    """'7d', '12h', '30m', '45s' or plain seconds -> seconds."""
    if isinstance(value, (int, float)):
        return int(value)
    match = _DURATION.match(str(value or ""))
    if not match:
        raise ValueError(f"bad JWT_EXPIRES_IN value: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


def generate_token(payload: Dict[str, Any], now: Optional[int] = None) -> str:
    cfg = current_app.config
    issued = int(time.time()) if now is None else now
    claims = {
        "userId": payload["userId"],
        "email": payload["email"],
        "role": payload["role"],
        "iss": cfg.get("JWT_ISSUER", DEFAULT_ISSUER),
        "aud": cfg.get("JWT_AUDIENCE", DEFAULT_AUDIENCE),
        "iat": issued,
        "exp": issued + parse_expires_in(cfg.get("JWT_EXPIRES_IN", "7d")),
    }
    return jwt.encode(claims, cfg["JWT_SECRET"], algorithm=ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    cfg = current_app.config
    try:
        return jwt.decode(
            token,
            cfg["JWT_SECRET"],
            algorithms=[ALGORITHM],
            audience=cfg.get("JWT_AUDIENCE", DEFAULT_AUDIENCE),
            issuer=cfg.get("JWT_ISSUER", DEFAULT_ISSUER),
        )
    except JWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc


def extract_token_from_header(header: Optional[str]) -> str:
    if not header:
        raise AuthenticationError("No authorization header provided")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise AuthenticationError("Invalid authorization header format")
    return parts[1]
