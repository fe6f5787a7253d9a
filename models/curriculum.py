from __future__ import annotations
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db
from .user import utcnow

# Category ratings that feed overall_rating. Sub-scores (comprehensiveness,
# completeness, support level, flexibility, cost value) are not categories.
CATEGORY_RATING_FIELDS = (
    "target_age_grade_rating",
    "teaching_approach_rating",
    "subjects_covered_rating",
    "materials_included_rating",
    "instruction_style_rating",
    "time_commitment_rating",
    "cost_rating",
    "availability_rating",
)


def overall_rating_for(ratings) -> float:
    """Mean of the provided (non-zero) category ratings, 0 when none are set."""
    provided = [r for r in ratings if r]
    if not provided:
        return 0.0
    return sum(provided) / len(provided)


class Curriculum(db.Model):
    __tablename__ = "curricula"

    id: Mapped[int] = mapped_column(primary_key=True)
    slug: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False, index=True)
    publisher: Mapped[str] = mapped_column(db.String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    image_url: Mapped[str | None] = mapped_column(db.String(500))
    grade_level_id: Mapped[int] = mapped_column(ForeignKey("grade_levels.id", ondelete="RESTRICT"),
                                                nullable=False, index=True)

    # target age / grade
    target_age_grade_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # teaching approach
    teaching_approach_style: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    teaching_approach_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    teaching_approach_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # subjects covered
    subject_comprehensiveness: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subjects_covered_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # materials
    materials_components: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    materials_completeness: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    materials_included_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # instruction style
    instruction_style_type: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    instruction_support_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    instruction_style_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # time commitment
    time_commitment_daily_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_commitment_weekly_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    time_commitment_flexibility: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    time_commitment_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # cost
    cost_price_range: Mapped[str] = mapped_column(db.String(4), nullable=False, default="$", index=True)
    cost_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    strengths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    weaknesses: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    best_for: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # availability
    availability_in_print: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    availability_digital: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    availability_used_market: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    availability_rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    overall_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, index=True)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    grade_level = relationship("GradeLevel", back_populates="curricula")
    curriculum_subjects = relationship("CurriculumSubject", back_populates="curriculum",
                                       cascade="all, delete-orphan")
    saved_by = relationship("SavedCurriculum", back_populates="curriculum", cascade="all")

    @property
    def subjects(self):
        return [cs.subject for cs in self.curriculum_subjects if cs.subject is not None]

    def category_ratings(self) -> list[int]:
        return [getattr(self, f) or 0 for f in CATEGORY_RATING_FIELDS]

    def recompute_overall_rating(self) -> float:
        self.overall_rating = overall_rating_for(self.category_ratings())
        return self.overall_rating

    def __repr__(self):
        return f"<Curriculum {self.slug}>"


class CurriculumSubject(db.Model):
    __tablename__ = "curriculum_subjects"

    curriculum_id: Mapped[int] = mapped_column(ForeignKey("curricula.id", ondelete="CASCADE"), primary_key=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True,
                                            index=True)

    curriculum = relationship("Curriculum", back_populates="curriculum_subjects")
    subject = relationship("Subject", back_populates="curriculum_subjects")


class SavedCurriculum(db.Model):
    __tablename__ = "saved_curricula"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    curriculum_id: Mapped[int] = mapped_column(ForeignKey("curricula.id", ondelete="CASCADE"), nullable=False)
    personal_notes: Mapped[str | None] = mapped_column(Text)
    saved_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="saved_curricula")
    curriculum = relationship("Curriculum", back_populates="saved_by")

    __table_args__ = (
        UniqueConstraint("user_id", "curriculum_id", name="uq_saved_user_curriculum"),
    )
