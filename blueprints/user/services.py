from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import selectinload

from blueprints.core.responses import MAX_DB_INT
from blueprints.curricula.services import id_or_none
from errors import NotFoundError, ValidationError
from extensions import db
from models import Curriculum, CurriculumSubject, SavedCurriculum, User, to_iso

MAX_NOTES = 1000


def _saved_query(user_id: int):
    return (
        SavedCurriculum.query
        .filter(SavedCurriculum.user_id == user_id)
        .options(
            selectinload(SavedCurriculum.curriculum).selectinload(Curriculum.grade_level),
            selectinload(SavedCurriculum.curriculum)
            .selectinload(Curriculum.curriculum_subjects)
            .selectinload(CurriculumSubject.subject),
        )
    )


def list_saved(user: User) -> List[Dict]:
    rows = _saved_query(user.id).order_by(SavedCurriculum.saved_at.desc(), SavedCurriculum.id.desc()).all()
    out = []
    for saved in rows:
        c = saved.curriculum
        out.append({
            "id": saved.id,
            "personalNotes": saved.personal_notes,
            "savedAt": to_iso(saved.saved_at),
            "curriculum": {
                "id": c.id,
                "slug": c.slug,
                "name": c.name,
                "publisher": c.publisher,
                "description": c.description,
                "imageUrl": c.image_url,
                "overallRating": c.overall_rating,
                "gradeLevel": c.grade_level.to_dict() if c.grade_level else None,
                "subjects": [s.to_dict() for s in c.subjects],
                "teachingApproachStyle": c.teaching_approach_style,
                "costPriceRange": c.cost_price_range,
                "timeCommitmentDailyMinutes": c.time_commitment_daily_minutes,
            },
        })
    return out


def _curriculum_id(raw: Any) -> Optional[int]:
    """Parsed id; None when it is well formed but too large to exist."""
    if isinstance(raw, bool):
        raise ValidationError("Curriculum ID is required")
    if isinstance(raw, int) and raw > 0:
        return raw if raw <= MAX_DB_INT else None
    if isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        return id_or_none(raw)
    raise ValidationError("Curriculum ID is required")


def _notes(raw: Any) -> Optional[str]:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ValidationError("Personal notes must be a string")
    if len(raw) > MAX_NOTES:
        raise ValidationError(f"Personal notes cannot exceed {MAX_NOTES} characters")
    return raw


def save_curriculum(user: User, payload: Dict[str, Any]) -> Tuple[SavedCurriculum, bool]:
    """Insert or update the (user, curriculum) bookmark. Returns (row, created)."""
    curriculum_id = _curriculum_id(payload.get("curriculumId"))
    notes = _notes(payload.get("personalNotes"))

    curriculum = db.session.get(Curriculum, curriculum_id) if curriculum_id is not None else None
    if curriculum is None:
        raise NotFoundError("Curriculum not found")

    saved = SavedCurriculum.query.filter_by(user_id=user.id, curriculum_id=curriculum_id).first()
    created = saved is None
    if created:
        saved = SavedCurriculum(user_id=user.id, curriculum_id=curriculum_id, personal_notes=notes)
        db.session.add(saved)
    else:
        saved.personal_notes = notes
    db.session.commit()
    return saved, created


def saved_dict(saved: SavedCurriculum) -> Dict:
    c = saved.curriculum
    return {
        "id": saved.id,
        "personalNotes": saved.personal_notes,
        "savedAt": to_iso(saved.saved_at),
        "curriculum": {
            "id": c.id,
            "slug": c.slug,
            "name": c.name,
            "publisher": c.publisher,
            "overallRating": c.overall_rating,
        },
    }


def remove_saved(user: User, saved_id: int) -> str:
    saved = db.session.get(SavedCurriculum, saved_id)
    # someone else's bookmark looks exactly like a missing one
    if saved is None or saved.user_id != user.id:
        raise NotFoundError("Saved curriculum not found")
    name = saved.curriculum.name
    db.session.delete(saved)
    db.session.commit()
    return name
