from flask import Blueprint

bp = Blueprint("core", __name__)
# routes register the hooks, handlers and probes on import
from . import routes  # noqa: E402,F401
