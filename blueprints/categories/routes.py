from __future__ import annotations

from blueprints.core.responses import success

from . import bp
from . import services as svc


@bp.get("")
def index():
    return success({
        "subjects": svc.subjects_with_counts(),
        "gradeLevels": svc.grade_levels_with_counts(),
        "teachingApproaches": svc.teaching_approaches_with_counts(),
        "costRanges": svc.cost_ranges_with_counts(),
    })


@bp.get("/subjects")
def subjects():
    return success({"subjects": svc.subjects_with_counts()})


@bp.get("/grade-levels")
def grade_levels():
    return success({"gradeLevels": svc.grade_levels_with_counts()})


@bp.get("/teaching-approaches")
def teaching_approaches():
    return success({"teachingApproaches": svc.teaching_approaches_with_counts()})


@bp.get("/cost-ranges")
def cost_ranges():
    return success({"costRanges": svc.cost_ranges_with_counts()})
