from flask import Blueprint

bp = Blueprint("curricula", __name__)
from . import routes  # noqa: E402,F401
