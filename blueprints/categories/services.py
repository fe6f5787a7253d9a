from __future__ import annotations
from typing import Dict, List

from sqlalchemy import func

from extensions import db
from models import Curriculum, CurriculumSubject, GradeLevel, Subject


def subjects_with_counts() -> List[Dict]:
    n = func.count(CurriculumSubject.curriculum_id)
    rows = (
        db.session.query(Subject, n)
        .outerjoin(CurriculumSubject, CurriculumSubject.subject_id == Subject.id)
        .group_by(Subject.id)
        .order_by(Subject.name.asc())
        .all()
    )
    return [{**subject.to_dict(), "curriculumCount": count} for subject, count in rows]


def grade_levels_with_counts() -> List[Dict]:
    n = func.count(Curriculum.id)
    rows = (
        db.session.query(GradeLevel, n)
        .outerjoin(Curriculum, Curriculum.grade_level_id == GradeLevel.id)
        .group_by(GradeLevel.id)
        .order_by(GradeLevel.min_age.asc(), GradeLevel.name.asc())
        .all()
    )
    return [{**grade.to_dict(with_ages=True), "curriculumCount": count} for grade, count in rows]


def teaching_approaches_with_counts() -> List[Dict]:
    n = func.count(Curriculum.id)
    rows = (
        db.session.query(Curriculum.teaching_approach_style, n)
        .group_by(Curriculum.teaching_approach_style)
        .order_by(n.desc(), Curriculum.teaching_approach_style.asc())
        .all()
    )
    return [{"name": style, "curriculumCount": count} for style, count in rows]


def cost_ranges_with_counts() -> List[Dict]:
    n = func.count(Curriculum.id)
    rows = (
        db.session.query(Curriculum.cost_price_range, n)
        .group_by(Curriculum.cost_price_range)
        .order_by(Curriculum.cost_price_range.asc())
        .all()
    )
    return [{"range": rng, "curriculumCount": count} for rng, count in rows]
