# blueprints/auth/routes.py
from __future__ import annotations
from functools import wraps
from typing import Callable, Optional

from flask import Blueprint, current_app, g
from flask_login import current_user, login_required

from blueprints.core.responses import created, error, success
from blueprints.core.sanitize import request_payload
from errors import AuthenticationError, AuthorizationError, ConflictError
from extensions import db, login_manager
from models import Role, User

from .tokens import extract_token_from_header, generate_token, hash_password, verify_password, verify_token
from .validators import validate_login_request, validate_register_request

bp = Blueprint("auth", __name__)


@login_manager.request_loader
def load_user_from_bearer(req) -> Optional[User]:
    g.auth_error = None
    try:
        token = extract_token_from_header(req.headers.get("Authorization"))
        claims = verify_token(token)
    except AuthenticationError as exc:
        g.auth_error = exc.message
        return None
    user_id = claims.get("userId")
    user = db.session.get(User, user_id) if isinstance(user_id, int) else None
    if user is None:
        # token outlived its account
        g.auth_error = "User not found"
    return user


@login_manager.unauthorized_handler
def _unauthorized():
    return error("AUTHENTICATION_ERROR", g.get("auth_error") or "Authentication required", 401)


def admin_required(fn: Callable):
    @wraps(fn)
    @login_required
    def wrapper(*args, **kwargs):
        if getattr(current_user, "role", None) != Role.ADMIN.value:
            raise AuthorizationError("Admin access required")
        return fn(*args, **kwargs)
    return wrapper


def _token_for(user: User) -> str:
    return generate_token({"userId": user.id, "email": user.email, "role": user.role})


@bp.post("/register")
def register():
    data = validate_register_request(request_payload())
    if User.query.filter_by(email=data["email"]).first():
        raise ConflictError("User with this email already exists")

    user = User(
        email=data["email"],
        password_hash=hash_password(data["password"]),
        first_name=data["first_name"],
        last_name=data["last_name"],
        role=Role.USER.value,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("user registered", extra={"event": "auth"})
    return created({"user": user.to_dict(), "token": _token_for(user)}, "User registered successfully")


@bp.post("/login")
def login():
    data = validate_login_request(request_payload())
    user: Optional[User] = User.query.filter_by(email=data["email"]).first()
    if not user or not verify_password(data["password"], user.password_hash):
        raise AuthenticationError("Invalid email or password")
    return success({"user": user.to_dict(), "token": _token_for(user)}, "Login successful")


@bp.get("/me")
@login_required
def me():
    return success({"user": current_user.to_dict()})
