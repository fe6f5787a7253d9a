# blueprints/curricula/services.py
from __future__ import annotations
from typing import Dict, List, Optional, Tuple

from sqlalchemy import false, or_
from sqlalchemy.orm import selectinload

from blueprints.core.responses import MAX_DB_INT, float_or_none, multi_arg, page_params, total_pages
from models import Curriculum, CurriculumSubject, Subject, to_iso

LIST_SORT_FIELDS = {
    "name": Curriculum.name,
    "publisher": Curriculum.publisher,
    "overallRating": Curriculum.overall_rating,
    "createdAt": Curriculum.created_at,
    "costPriceRange": Curriculum.cost_price_range,
}


def with_relations(query):
    return query.options(
        selectinload(Curriculum.grade_level),
        selectinload(Curriculum.curriculum_subjects).selectinload(CurriculumSubject.subject),
    )


def subject_name_filter(names: List[str]):
    """Curricula linked to any subject with one of these names."""
    return Curriculum.curriculum_subjects.any(CurriculumSubject.subject.has(Subject.name.in_(names)))


def id_or_none(raw) -> Optional[int]:
    """Positive key that fits the id column, else None (matches nothing)."""
    text = str(raw or "").strip().lstrip("0")
    if not (text.isascii() and text.isdigit()) or len(text) > len(str(MAX_DB_INT)):
        return None
    value = int(text)
    return value if value <= MAX_DB_INT else None


def ordered(column, direction: str):
    return column.desc() if direction == "desc" else column.asc()


def list_curricula(args) -> Tuple[List[Curriculum], Dict]:
    page, limit = page_params(args)
    query = Curriculum.query

    grade_level = args.get("gradeLevel")
    if grade_level:
        grade_id = id_or_none(grade_level)
        query = query.filter(Curriculum.grade_level_id == grade_id if grade_id is not None else false())

    subjects = multi_arg(args, "subjects")
    if subjects:
        query = query.filter(subject_name_filter(subjects))

    approach = (args.get("teachingApproach") or "").strip()
    if approach:
        query = query.filter(Curriculum.teaching_approach_style.icontains(approach, autoescape=True))

    cost_range = args.get("costRange")
    if cost_range:
        query = query.filter(Curriculum.cost_price_range == cost_range)

    min_rating = float_or_none(args.get("minRating"))
    if min_rating is not None:
        query = query.filter(Curriculum.overall_rating >= min_rating)

    term = (args.get("search") or "").strip()
    if term:
        query = query.filter(or_(
            Curriculum.name.icontains(term, autoescape=True),
            Curriculum.publisher.icontains(term, autoescape=True),
            Curriculum.description.icontains(term, autoescape=True),
            Curriculum.teaching_approach_description.icontains(term, autoescape=True),
        ))

    sort_by = args.get("sortBy") or "name"
    sort_order = "desc" if args.get("sortOrder") == "desc" else "asc"
    if sort_by in LIST_SORT_FIELDS:
        order = [ordered(LIST_SORT_FIELDS[sort_by], sort_order), Curriculum.id.asc()]
    else:
        order = [Curriculum.name.asc(), Curriculum.id.asc()]

    total = query.order_by(None).count()
    items = (
        with_relations(query)
        .order_by(*order)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pages = total_pages(total, limit)
    pagination = {
        "page": page,
        "limit": limit,
        "totalCount": total,
        "totalPages": pages,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }
    return items, pagination


def find_by_slug_or_id(slug_or_id: str) -> Optional[Curriculum]:
    curriculum = with_relations(Curriculum.query).filter(Curriculum.slug == slug_or_id).first()
    if curriculum is None:
        # numeric ids still resolve for old links
        curriculum_id = id_or_none(slug_or_id)
        if curriculum_id is not None:
            curriculum = with_relations(Curriculum.query).filter(Curriculum.id == curriculum_id).first()
    return curriculum


def subject_refs(curriculum: Curriculum, with_description: bool = False) -> List[Dict]:
    refs = []
    for subject in curriculum.subjects:
        ref = {"id": subject.id, "name": subject.name}
        if with_description:
            ref["description"] = subject.description
        refs.append(ref)
    return refs


def curriculum_summary(c: Curriculum) -> Dict:
    return {
        "id": c.id,
        "slug": c.slug,
        "name": c.name,
        "publisher": c.publisher,
        "description": c.description,
        "imageUrl": c.image_url,
        "gradeLevel": c.grade_level.to_dict() if c.grade_level else None,
        "subjects": subject_refs(c),
        "teachingApproach": {"style": c.teaching_approach_style, "rating": c.teaching_approach_rating},
        "cost": {"priceRange": c.cost_price_range, "rating": c.cost_rating},
        "overallRating": c.overall_rating,
        "reviewCount": c.review_count,
        "createdAt": to_iso(c.created_at),
    }


def curriculum_detail(c: Curriculum) -> Dict:
    """Full review grouped by category."""
    return {
        "id": c.id,
        "slug": c.slug,
        "name": c.name,
        "publisher": c.publisher,
        "description": c.description,
        "imageUrl": c.image_url,
        "targetAgeGrade": {
            "gradeLevel": c.grade_level.to_dict(with_ages=True) if c.grade_level else None,
            "rating": c.target_age_grade_rating,
        },
        "teachingApproach": {
            "style": c.teaching_approach_style,
            "description": c.teaching_approach_description,
            "rating": c.teaching_approach_rating,
        },
        "subjectsCovered": {
            "subjects": subject_refs(c, with_description=True),
            "comprehensiveness": c.subject_comprehensiveness,
            "rating": c.subjects_covered_rating,
        },
        "materialsIncluded": {
            "components": list(c.materials_components or []),
            "completeness": c.materials_completeness,
            "rating": c.materials_included_rating,
        },
        "instructionStyle": {
            "type": c.instruction_style_type,
            "supportLevel": c.instruction_support_level,
            "rating": c.instruction_style_rating,
        },
        "timeCommitment": {
            "dailyMinutes": c.time_commitment_daily_minutes,
            "weeklyHours": c.time_commitment_weekly_hours,
            "flexibility": c.time_commitment_flexibility,
            "rating": c.time_commitment_rating,
        },
        "cost": {"priceRange": c.cost_price_range, "value": c.cost_value, "rating": c.cost_rating},
        "strengths": list(c.strengths or []),
        "weaknesses": list(c.weaknesses or []),
        "bestFor": list(c.best_for or []),
        "availability": {
            "inPrint": c.availability_in_print,
            "digitalAvailable": c.availability_digital,
            "usedMarket": c.availability_used_market,
            "rating": c.availability_rating,
        },
        "overallRating": c.overall_rating,
        "reviewCount": c.review_count,
        "createdAt": to_iso(c.created_at),
        "updatedAt": to_iso(c.updated_at),
    }
