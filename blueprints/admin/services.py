# blueprints/admin/services.py
from __future__ import annotations
import threading
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_

from blueprints.core.responses import page_params, total_pages
from blueprints.curricula.services import ordered, subject_refs, with_relations
from blueprints.curricula.slugs import create_curriculum_slug, ensure_unique_slug, is_valid_slug
from errors import NotFoundError, ValidationError
from extensions import db
from models import (
    CATEGORY_RATING_FIELDS, Curriculum, CurriculumSubject, GradeLevel, Role, SavedCurriculum, Subject, User,
    to_iso, utcnow,
)

from .schemas import dedupe, parse_curriculum

ADMIN_CURRICULUM_SORT = {
    "name": Curriculum.name,
    "publisher": Curriculum.publisher,
    "overallRating": Curriculum.overall_rating,
    "createdAt": Curriculum.created_at,
}

USER_SORT = {
    "firstName": User.first_name,
    "lastName": User.last_name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
}

RECENT_DAYS = 30
TOP_N = 10


def _admin_paging(page: int, limit: int, total: int) -> Dict:
    return {
        "currentPage": page,
        "totalPages": total_pages(total, limit),
        "totalItems": total,
        "itemsPerPage": limit,
    }


def _sort(args, allowed: Dict, default_field: str = "createdAt"):
    sort_by = args.get("sortBy") or default_field
    sort_order = "asc" if args.get("sortOrder") == "asc" else "desc"
    if sort_by not in allowed:
        return allowed[default_field].desc()
    return ordered(allowed[sort_by], sort_order)


# ---------- curricula ----------

def _check_references(grade_level_id: Optional[int], subject_ids: Optional[List[int]]) -> None:
    if grade_level_id is not None and db.session.get(GradeLevel, grade_level_id) is None:
        raise ValidationError("Invalid grade level ID")
    if subject_ids:
        found = Subject.query.filter(Subject.id.in_(subject_ids)).count()
        if found != len(subject_ids):
            raise ValidationError("One or more subject IDs are invalid")


def _slug_taken(slug: str, exclude_id: Optional[int] = None) -> bool:
    query = Curriculum.query.filter(Curriculum.slug == slug)
    if exclude_id is not None:
        query = query.filter(Curriculum.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def _new_slug(name: str, publisher: str, exclude_id: Optional[int] = None) -> str:
    slug = ensure_unique_slug(create_curriculum_slug(name, publisher), lambda s: _slug_taken(s, exclude_id))
    if not is_valid_slug(slug):
        raise ValidationError("Validation failed", ["Name and publisher are too long to build a URL slug"])
    return slug


def _replace_subjects(curriculum: Curriculum, subject_ids: List[int]) -> None:
    keep = {cs.subject_id: cs for cs in curriculum.curriculum_subjects}
    curriculum.curriculum_subjects = [keep.get(sid) or CurriculumSubject(subject_id=sid) for sid in subject_ids]


def admin_list_curricula(args) -> Tuple[List[Dict], Dict]:
    page, limit = page_params(args)
    query = Curriculum.query

    term = (args.get("search") or "").strip()
    if term:
        query = query.filter(or_(
            Curriculum.name.icontains(term, autoescape=True),
            Curriculum.publisher.icontains(term, autoescape=True),
            Curriculum.description.icontains(term, autoescape=True),
        ))

    total = query.order_by(None).count()
    rows = (
        with_relations(query)
        .order_by(_sort(args, ADMIN_CURRICULUM_SORT), Curriculum.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    counts = dict(
        db.session.query(SavedCurriculum.curriculum_id, func.count(SavedCurriculum.id))
        .filter(SavedCurriculum.curriculum_id.in_([c.id for c in rows]))
        .group_by(SavedCurriculum.curriculum_id)
        .all()
    ) if rows else {}

    items = [{
        "id": c.id,
        "slug": c.slug,
        "name": c.name,
        "publisher": c.publisher,
        "description": c.description,
        "imageUrl": c.image_url,
        "gradeLevel": c.grade_level.to_dict() if c.grade_level else None,
        "subjects": subject_refs(c),
        "teachingApproachStyle": c.teaching_approach_style,
        "costPriceRange": c.cost_price_range,
        "timeCommitmentDailyMinutes": c.time_commitment_daily_minutes,
        "overallRating": c.overall_rating,
        "reviewCount": c.review_count,
        "saveCount": counts.get(c.id, 0),
        "createdAt": to_iso(c.created_at),
        "updatedAt": to_iso(c.updated_at),
    } for c in rows]
    return items, _admin_paging(page, limit, total)


def create_curriculum(payload: Dict[str, Any]) -> Curriculum:
    data = parse_curriculum(payload).changes()
    subject_ids = dedupe(data.pop("subject_ids", None))
    _check_references(data["grade_level_id"], subject_ids)

    slug = _new_slug(data["name"], data["publisher"])
    curriculum = Curriculum(slug=slug, review_count=1, **data)
    curriculum.curriculum_subjects = [CurriculumSubject(subject_id=sid) for sid in subject_ids]
    curriculum.recompute_overall_rating()

    db.session.add(curriculum)
    db.session.commit()
    return curriculum


def update_curriculum(curriculum_id: int, payload: Dict[str, Any]) -> Curriculum:
    curriculum = db.session.get(Curriculum, curriculum_id)
    if curriculum is None:
        raise NotFoundError("Curriculum not found")

    data = parse_curriculum(payload, partial=True).changes()
    subject_ids = data.pop("subject_ids", None)
    if subject_ids is not None:
        subject_ids = dedupe(subject_ids)
    _check_references(data.get("grade_level_id"), subject_ids)

    if "name" in data or "publisher" in data:
        name = data.get("name", curriculum.name)
        publisher = data.get("publisher", curriculum.publisher)
        if create_curriculum_slug(name, publisher) != curriculum.slug:
            curriculum.slug = _new_slug(name, publisher, exclude_id=curriculum.id)

    for field, value in data.items():
        setattr(curriculum, field, value)
    curriculum.recompute_overall_rating()

    if subject_ids is not None:
        _replace_subjects(curriculum, subject_ids)

    db.session.commit()
    return curriculum


def delete_curriculum(curriculum_id: int) -> int:
    curriculum = db.session.get(Curriculum, curriculum_id)
    if curriculum is None:
        raise NotFoundError("Curriculum not found")
    db.session.delete(curriculum)
    db.session.commit()
    return curriculum_id


# ---------- analytics ----------

def _curriculum_brief(c: Curriculum) -> Dict:
    return {
        "id": c.id,
        "slug": c.slug,
        "name": c.name,
        "publisher": c.publisher,
        "overallRating": c.overall_rating,
        "reviewCount": c.review_count,
    }


def analytics() -> Dict:
    since = utcnow() - timedelta(days=RECENT_DAYS)

    overview = {
        "totalCurricula": Curriculum.query.count(),
        "totalUsers": User.query.count(),
        "totalSavedCurricula": SavedCurriculum.query.count(),
        "totalSubjects": Subject.query.count(),
        "totalGradeLevels": GradeLevel.query.count(),
    }
    recent = {
        "newCurricula": Curriculum.query.filter(Curriculum.created_at >= since).count(),
        "newUsers": User.query.filter(User.created_at >= since).count(),
        "newSaves": SavedCurriculum.query.filter(SavedCurriculum.saved_at >= since).count(),
    }

    top_rated = (
        Curriculum.query
        .order_by(Curriculum.overall_rating.desc(), Curriculum.review_count.desc(), Curriculum.id.asc())
        .limit(TOP_N)
        .all()
    )

    saves = func.count(SavedCurriculum.id)
    most_saved = (
        db.session.query(Curriculum, saves)
        .outerjoin(SavedCurriculum, SavedCurriculum.curriculum_id == Curriculum.id)
        .group_by(Curriculum.id)
        .order_by(saves.desc(), Curriculum.overall_rating.desc(), Curriculum.id.asc())
        .limit(TOP_N)
        .all()
    )

    by_grade = (
        db.session.query(GradeLevel, func.count(Curriculum.id))
        .outerjoin(Curriculum, Curriculum.grade_level_id == GradeLevel.id)
        .group_by(GradeLevel.id)
        .order_by(GradeLevel.name.asc())
        .all()
    )
    by_subject = (
        db.session.query(Subject, func.count(CurriculumSubject.curriculum_id))
        .outerjoin(CurriculumSubject, CurriculumSubject.subject_id == Subject.id)
        .group_by(Subject.id)
        .order_by(Subject.name.asc())
        .all()
    )

    columns = [Curriculum.overall_rating] + [getattr(Curriculum, f) for f in CATEGORY_RATING_FIELDS]
    averages = db.session.query(*[func.avg(col) for col in columns]).one()
    keys = ["overall", "targetAgeGrade", "teachingApproach", "subjectsCovered", "materialsIncluded",
            "instructionStyle", "timeCommitment", "cost", "availability"]

    return {
        "overview": overview,
        "recentActivity": recent,
        "topPerforming": {
            "topRatedCurricula": [_curriculum_brief(c) for c in top_rated],
            "mostSavedCurricula": [{**_curriculum_brief(c), "saveCount": n} for c, n in most_saved],
        },
        "distribution": {
            "byGradeLevel": [
                {"id": g.id, "name": g.name, "ageRange": g.age_range, "curriculumCount": n} for g, n in by_grade
            ],
            "bySubject": [{"id": s.id, "name": s.name, "curriculumCount": n} for s, n in by_subject],
        },
        "averageRatings": {key: float(value or 0) for key, value in zip(keys, averages)},
    }


# ---------- users ----------

def list_users(args) -> Tuple[List[Dict], Dict]:
    page, limit = page_params(args)
    query = User.query

    term = (args.get("search") or "").strip()
    if term:
        query = query.filter(or_(
            User.first_name.icontains(term, autoescape=True),
            User.last_name.icontains(term, autoescape=True),
            User.email.icontains(term, autoescape=True),
        ))

    role = args.get("role")
    if role and role != "all":
        query = query.filter(User.role == role)

    total = query.order_by(None).count()
    users = query.order_by(_sort(args, USER_SORT), User.id.asc()).offset((page - 1) * limit).limit(limit).all()

    counts = dict(
        db.session.query(SavedCurriculum.user_id, func.count(SavedCurriculum.id))
        .filter(SavedCurriculum.user_id.in_([u.id for u in users]))
        .group_by(SavedCurriculum.user_id)
        .all()
    ) if users else {}

    items = [{
        "id": u.id,
        "email": u.email,
        "firstName": u.first_name,
        "lastName": u.last_name,
        "role": u.role,
        "createdAt": to_iso(u.created_at),
        "savedCount": counts.get(u.id, 0),
    } for u in users]
    return items, _admin_paging(page, limit, total)


def update_user_role(user_id: int, payload: Dict[str, Any]) -> User:
    role = payload.get("role")
    if role not in (Role.USER.value, Role.ADMIN.value):
        raise ValidationError("Valid role is required (USER or ADMIN)")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    user.role = role
    db.session.commit()
    return user


def delete_user(user_id: int) -> int:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    db.session.delete(user)
    db.session.commit()
    return user_id


# ---------- moderation ----------

MODERATION_STATUSES = ("approved", "rejected", "pending")


class ModerationQueue:
    """In-process stand-in for a reporting backend."""

    def __init__(self, items: Optional[List[Dict]] = None):
        self._items: Dict[str, Dict] = {str(item["id"]): dict(item) for item in items or []}
        self._lock = threading.Lock()

    def items(self) -> List[Dict]:
        with self._lock:
            return [dict(item) for item in self._items.values()]

    def set_status(self, item_id: str, status: str) -> Dict:
        with self._lock:
            item = self._items.get(item_id)
            if item is None:
                raise NotFoundError("Moderation item not found")
            item["status"] = status
            item["updatedAt"] = to_iso(utcnow())
            return dict(item)


def moderation_queue(app) -> ModerationQueue:
    queue = app.extensions.get("moderation_queue")
    if queue is None:
        queue = app.extensions["moderation_queue"] = ModerationQueue(app.config.get("MODERATION_ITEMS"))
    return queue


def moderation_status(payload: Dict[str, Any]) -> str:
    status = payload.get("status")
    if status not in MODERATION_STATUSES:
        raise ValidationError("Valid status is required (approved, rejected, pending)")
    return status
