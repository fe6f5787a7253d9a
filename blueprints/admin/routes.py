from __future__ import annotations
from flask import current_app, request

from blueprints.auth import admin_required
from blueprints.core.responses import created, success
from blueprints.core.sanitize import request_payload
from blueprints.curricula.services import curriculum_detail

from . import bp
from . import services as svc


# ---------- curricula ----------

@bp.get("/curricula")
@admin_required
def curricula_index():
    items, pagination = svc.admin_list_curricula(request.args)
    return success({"curricula": items, "pagination": pagination})


@bp.post("/curricula")
@admin_required
def curricula_create():
    curriculum = svc.create_curriculum(request_payload())
    current_app.logger.info("curriculum created", extra={"event": "admin", "curriculum_id": curriculum.id})
    return created({"curriculum": curriculum_detail(curriculum)}, "Curriculum created successfully")


@bp.put("/curricula/<id:curriculum_id>")
@admin_required
def curricula_update(curriculum_id: int):
    curriculum = svc.update_curriculum(curriculum_id, request_payload())
    return success({"curriculum": curriculum_detail(curriculum)}, "Curriculum updated successfully")


@bp.delete("/curricula/<id:curriculum_id>")
@admin_required
def curricula_delete(curriculum_id: int):
    deleted = svc.delete_curriculum(curriculum_id)
    current_app.logger.info("curriculum deleted", extra={"event": "admin", "curriculum_id": deleted})
    return success({"id": deleted}, "Curriculum deleted successfully")


# ---------- analytics ----------

@bp.get("/analytics")
@admin_required
def analytics():
    return success({"analytics": svc.analytics()}, "Analytics retrieved successfully")


# ---------- users ----------

@bp.get("/users")
@admin_required
def users_index():
    items, pagination = svc.list_users(request.args)
    return success({"users": items, "pagination": pagination})


@bp.put("/users/<id:user_id>")
@admin_required
def users_update(user_id: int):
    user = svc.update_user_role(user_id, request_payload())
    data = user.to_dict()
    data.pop("updatedAt", None)
    return success({"user": data}, "User role updated successfully")


@bp.delete("/users/<id:user_id>")
@admin_required
def users_delete(user_id: int):
    deleted = svc.delete_user(user_id)
    return success({"id": deleted}, "User deleted successfully")


# ---------- moderation ----------

@bp.get("/moderation")
@admin_required
def moderation_index():
    items = svc.moderation_queue(current_app).items()
    pagination = {"currentPage": 1, "totalPages": 1 if items else 0, "totalItems": len(items), "itemsPerPage": 10}
    return success({"items": items, "pagination": pagination})


@bp.put("/moderation/<item_id>")
@admin_required
def moderation_update(item_id: str):
    status = svc.moderation_status(request_payload())
    item = svc.moderation_queue(current_app).set_status(item_id, status)
    return success({"id": item["id"], "status": item["status"], "updatedAt": item["updatedAt"]},
                   "Moderation status updated successfully")
