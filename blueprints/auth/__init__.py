from .routes import admin_required, bp

__all__ = ["admin_required", "bp"]
