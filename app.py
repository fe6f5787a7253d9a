from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix
from config import DEFAULT_JWT_SECRET, config_map
from extensions import db, migrate, login_manager
from sqlalchemy import inspect


def _seed_from_config(app):
    if not app.config.get("SEED_TEST_DATA"):
        return
    with app.app_context():
        # the users table may not exist yet (before alembic upgrade)
        if not inspect(db.engine).has_table("users"):
            return

        from models import User  # local import to avoid cycles
        from blueprints.auth.tokens import hash_password
        created = 0
        for u in app.config.get("DEFAULT_USERS", []):
            if User.query.filter_by(email=u["email"]).first():
                continue
            db.session.add(User(
                email=u["email"],
                password_hash=hash_password(u["password"]),
                first_name=u.get("first_name", ""),
                last_name=u.get("last_name", ""),
                role=u["role"],
            ))
            created += 1
        if created:
            db.session.commit()
            app.logger.info("seeded default users", extra={"event": "seed"})


def register_blueprints(app: Flask) -> None:
    from blueprints.core.responses import DbIdConverter
    # converters must exist before any rule using <id:...> is added
    app.url_map.converters["id"] = DbIdConverter
    # core routes must be imported before the blueprint is registered
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    from blueprints.seo import bp as seo_bp
    from blueprints.auth import bp as auth_bp
    from blueprints.curricula import bp as curricula_bp
    from blueprints.search import bp as search_bp
    from blueprints.categories import bp as categories_bp
    from blueprints.user import bp as user_bp
    from blueprints.admin import bp as admin_bp

    # core and seo without prefix: /health, /sitemap.xml at the root
    app.register_blueprint(core_bp)
    app.register_blueprint(seo_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(curricula_bp, url_prefix="/api/curricula")
    app.register_blueprint(search_bp, url_prefix="/api/search")
    app.register_blueprint(categories_bp, url_prefix="/api/categories")
    app.register_blueprint(user_bp, url_prefix="/api/user")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")


def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest always sets PYTEST_CURRENT_TEST; keep every test on a private in-memory database
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})

    if app.config.get("ENV_NAME") == "production" and app.config.get("JWT_SECRET") == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production")

    # payload keys stay in the order the serializers build them
    app.json.sort_keys = False
    proxies = app.config.get("TRUSTED_PROXIES", 0)
    if proxies:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies)

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    register_blueprints(app)
    _seed_from_config(app)
    return app


if __name__ == "__main__":
    application = create_app()
    application.run(port=application.config["PORT"])
