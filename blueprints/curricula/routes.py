from __future__ import annotations
from flask import request

from blueprints.core.responses import success
from errors import NotFoundError

from . import bp
from .services import curriculum_detail, curriculum_summary, find_by_slug_or_id, list_curricula


@bp.get("")
def index():
    items, pagination = list_curricula(request.args)
    return success({"curricula": [curriculum_summary(c) for c in items], "pagination": pagination})


@bp.get("/<slug_or_id>")
def detail(slug_or_id: str):
    curriculum = find_by_slug_or_id(slug_or_id)
    if curriculum is None:
        raise NotFoundError("Curriculum not found")
    return success({"curriculum": curriculum_detail(curriculum)})
