from flask import Blueprint

bp = Blueprint("categories", __name__)
from . import routes  # noqa: E402,F401
