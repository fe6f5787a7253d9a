from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


class GradeLevel(db.Model):
    __tablename__ = "grade_levels"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(120), unique=True, nullable=False)
    age_range: Mapped[str | None] = mapped_column(db.String(50))
    min_age: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    max_age: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)

    curricula = relationship("Curriculum", back_populates="grade_level")

    def to_dict(self, with_ages: bool = False) -> dict:
        out = {"id": self.id, "name": self.name, "ageRange": self.age_range}
        if with_ages:
            out["minAge"] = self.min_age
            out["maxAge"] = self.max_age
        return out
