from __future__ import annotations
import time

import pytest

from app import create_app
from blueprints.auth.tokens import (
    extract_token_from_header, generate_token, hash_password, parse_expires_in, verify_password, verify_token,
)
from blueprints.auth.validators import (
    PASSWORD_RULE, is_valid_email, is_valid_password, validate_register_request,
)
from errors import AuthenticationError, ValidationError
from extensions import db
from models import Role, User


@pytest.fixture()
def client_app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        db.session.add_all([
            User(email="admin@example.com", password_hash=hash_password("AdminPass1"),
                 first_name="Ada", last_name="Admin", role=Role.ADMIN.value),
            User(email="parent@example.com", password_hash=hash_password("Password123"),
                 first_name="Sarah", last_name="Johnson", role=Role.USER.value),
        ])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(client_app):
    return client_app.test_client()


def _login(client, email="parent@example.com", password="Password123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_register_returns_user_and_token(client):
    r = client.post("/api/auth/register", json={
        "email": "New.Parent@Example.com", "password": "Secret123", "firstName": "Nina", "lastName": "Novak",
    })
    assert r.status_code == 201
    js = r.get_json()
    assert js["message"] == "User registered successfully"
    user = js["data"]["user"]
    assert user["email"] == "new.parent@example.com"
    assert user["role"] == "USER"
    assert "password" not in user and "passwordHash" not in user
    claims = verify_token(js["data"]["token"])
    assert claims["userId"] == user["id"] and claims["role"] == "USER"


def test_register_duplicate_email_409(client):
    r = client.post("/api/auth/register", json={
        "email": "parent@example.com", "password": "Secret123", "firstName": "Sam", "lastName": "Smith",
    })
    assert r.status_code == 409
    assert r.get_json()["error"]["message"] == "User with this email already exists"


def test_register_validation_messages(client):
    r = client.post("/api/auth/register", json={"email": "bad", "password": "short", "firstName": "A"})
    assert r.status_code == 400
    err = r.get_json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert err["details"]["errors"] == [
        "Invalid email format",
        PASSWORD_RULE,
        "First name must be between 2 and 50 characters",
        "Last name is required",
    ]


def test_register_escapes_markup_in_names(client):
    r = client.post("/api/auth/register", json={
        "email": "x@example.com", "password": "Secret123", "firstName": "<b>Bo", "lastName": "Lee",
    })
    assert r.status_code == 201
    assert r.get_json()["data"]["user"]["firstName"] == "&lt;b&gt;Bo"


def test_login_success(client):
    r = _login(client)
    assert r.status_code == 200
    js = r.get_json()
    assert js["message"] == "Login successful"
    assert js["data"]["user"]["email"] == "parent@example.com"
    assert js["data"]["token"]


def test_login_wrong_password_401(client):
    r = _login(client, password="Nope12345")
    assert r.status_code == 401
    assert r.get_json()["error"] == {"code": "AUTHENTICATION_ERROR", "message": "Invalid email or password"}


def test_login_unknown_email_same_message(client):
    r = _login(client, email="ghost@example.com")
    assert r.status_code == 401
    assert r.get_json()["error"]["message"] == "Invalid email or password"


def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.get_json()["error"]["message"] == "No authorization header provided"


def test_me_bad_header_format(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Token abc"})
    assert r.status_code == 401
    assert r.get_json()["error"]["message"] == "Invalid authorization header format"


def test_me_garbage_token(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.get_json()["error"]["message"] == "Invalid or expired token"


def test_me_with_token(client):
    token = _login(client).get_json()["data"]["token"]
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["user"]["firstName"] == "Sarah"


def test_me_token_for_deleted_user(client):
    token = _login(client).get_json()["data"]["token"]
    User.query.filter_by(email="parent@example.com").delete()
    db.session.commit()
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.get_json()["error"]["message"] == "User not found"


def test_expired_token_rejected(client_app):
    old = int(time.time()) - 8 * 86400
    token = generate_token({"userId": 1, "email": "admin@example.com", "role": "ADMIN"}, now=old)
    with pytest.raises(AuthenticationError):
        verify_token(token)


def test_token_signed_with_other_secret_rejected(client_app):
    token = generate_token({"userId": 1, "email": "admin@example.com", "role": "ADMIN"})
    client_app.config["JWT_SECRET"] = "rotated"
    with pytest.raises(AuthenticationError):
        verify_token(token)


def test_auth_rate_limit_counts_failures_only(client_app, client):
    client_app.config["RATELIMIT_AUTH_MAX"] = 2
    for _ in range(3):
        assert _login(client).status_code == 200
    assert _login(client, password="Wrong1234").status_code == 401
    assert _login(client, password="Wrong1234").status_code == 401
    r = _login(client)
    assert r.status_code == 429
    assert r.get_json()["error"]["code"] == "AUTH_RATE_LIMIT_EXCEEDED"


def test_password_hashing(client_app):
    hashed = hash_password("Secret123")
    assert hashed != "Secret123"
    assert verify_password("Secret123", hashed)
    assert not verify_password("Secret124", hashed)
    assert not verify_password("Secret123", "not-a-hash")


def test_parse_expires_in():
    assert parse_expires_in("7d") == 7 * 86400
    assert parse_expires_in("12h") == 12 * 3600
    assert parse_expires_in("90") == 90
    with pytest.raises(ValueError):
        parse_expires_in("soon")


def test_extract_token_from_header():
    assert extract_token_from_header("Bearer abc.def") == "abc.def"
    with pytest.raises(AuthenticationError):
        extract_token_from_header("Bearer")
    with pytest.raises(AuthenticationError):
        extract_token_from_header(None)


def test_validators():
    assert is_valid_email("a@b.co")
    assert not is_valid_email("a@b")
    assert not is_valid_email("a b@c.de")
    assert is_valid_password("abcdefg1")
    assert not is_valid_password("abcdefgh")
    assert not is_valid_password("1234567a\n")
    with pytest.raises(ValidationError) as exc:
        validate_register_request({})
    assert exc.value.errors == ["Email is required", "Password is required",
                                "First name is required", "Last name is required"]
