from __future__ import annotations

from sqlalchemy.orm import Mapped, mapped_column, relationship

from extensions import db


class Subject(db.Model):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(120), unique=True, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(db.Text)

    curriculum_subjects = relationship("CurriculumSubject", back_populates="subject", cascade="all")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "description": self.description}
