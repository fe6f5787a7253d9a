from __future__ import annotations
import traceback

from flask import current_app, request
from jose.exceptions import ExpiredSignatureError, JWTError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from errors import AppError
from extensions import db

from . import bp
from .responses import error


@bp.app_errorhandler(AppError)
def _app_error(exc: AppError):
    return error(exc.code, exc.message, exc.status_code, exc.details)


@bp.app_errorhandler(IntegrityError)
def _integrity_error(exc: IntegrityError):
    db.session.rollback()
    current_app.logger.warning("integrity error: %s", exc.orig, extra={"event": "db_error"})
    return error("DUPLICATE_ENTRY", "A record with this information already exists", 409)


@bp.app_errorhandler(NoResultFound)
def _no_result(exc: NoResultFound):
    return error("NOT_FOUND", "Record not found", 404)


@bp.app_errorhandler(SQLAlchemyError)
def _database_error(exc: SQLAlchemyError):
    db.session.rollback()
    current_app.logger.error("database error: %s", exc, extra={"event": "db_error"})
    return error("DATABASE_ERROR", "Database operation failed", 400)


@bp.app_errorhandler(ExpiredSignatureError)
def _token_expired(exc):
    return error("TOKEN_EXPIRED", "Authentication token has expired", 401)


@bp.app_errorhandler(JWTError)
def _token_invalid(exc):
    return error("INVALID_TOKEN", "Invalid authentication token", 401)


@bp.app_errorhandler(HTTPException)
def _http_error(exc: HTTPException):
    status = exc.code or 500
    if status == 404:
        return error("NOT_FOUND", f"Route {request.method} {request.path} not found", 404)
    code = (exc.name or "Error").upper().replace(" ", "_")
    return error(code, exc.description or exc.name, status)


@bp.app_errorhandler(Exception)
def _unhandled(exc: Exception):
    db.session.rollback()
    current_app.logger.exception(
        "unhandled error", extra={"event": "server_error", "path": request.path, "method": request.method}
    )
    details = None
    if current_app.config.get("ENV_NAME") != "production":
        details = traceback.format_exc()
    return error("INTERNAL_ERROR", "Internal server error", 500, details)
