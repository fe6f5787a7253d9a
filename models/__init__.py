from .user import Role, User, to_iso, utcnow
from .subject import Subject
from .grade_level import GradeLevel
from .curriculum import (
    CATEGORY_RATING_FIELDS,
    Curriculum,
    CurriculumSubject,
    SavedCurriculum,
    overall_rating_for,
)

__all__ = [
    "CATEGORY_RATING_FIELDS",
    "Curriculum",
    "CurriculumSubject",
    "GradeLevel",
    "Role",
    "SavedCurriculum",
    "Subject",
    "User",
    "overall_rating_for",
    "to_iso",
    "utcnow",
]
