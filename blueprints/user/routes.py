from __future__ import annotations
from flask_login import current_user, login_required

from blueprints.core.responses import success
from blueprints.core.sanitize import request_payload

from . import bp
from . import services as svc


@bp.get("/saved")
@login_required
def saved_list():
    items = svc.list_saved(current_user)
    return success({"savedCurricula": items, "count": len(items)}, "Saved curricula retrieved successfully")


@bp.post("/saved")
@login_required
def saved_add():
    saved, created = svc.save_curriculum(current_user, request_payload())
    message = "Curriculum saved successfully" if created else "Curriculum updated in saved list"
    return success({"savedCurriculum": svc.saved_dict(saved)}, message)


@bp.delete("/saved/<id:saved_id>")
@login_required
def saved_remove(saved_id: int):
    name = svc.remove_saved(current_user, saved_id)
    return success({"curriculumName": name}, "Curriculum removed from saved list")
