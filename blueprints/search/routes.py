from __future__ import annotations
from flask import request

from blueprints.core.responses import success

from . import bp
from . import services as svc


@bp.get("")
def search():
    term, results, pagination = svc.search(request.args)
    return success({"query": term, "results": results, "pagination": pagination})


@bp.get("/suggestions")
def suggestions():
    items = svc.suggest(q=request.args.get("q"), limit=request.args.get("limit"))
    return success({"suggestions": items})


@bp.get("/filters")
def filters():
    return success({"filters": svc.facet_counts(request.args.get("q"))})
