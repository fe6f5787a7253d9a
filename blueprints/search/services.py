# blueprints/search/services.py
from __future__ import annotations
import json
import math
import re
from typing import Dict, List, Optional, Tuple

from sqlalchemy import String, cast, false, func, or_
from sqlalchemy.orm import aliased

from blueprints.core.responses import float_or_none, int_or_zero, multi_arg, page_params, total_pages
from blueprints.curricula.services import id_or_none, ordered, subject_name_filter, with_relations
from errors import ValidationError
from extensions import db
from models import Curriculum, CurriculumSubject, GradeLevel, Subject, to_iso

NAMED_SORT_FIELDS = {
    "name": Curriculum.name,
    "publisher": Curriculum.publisher,
    "overallRating": Curriculum.overall_rating,
    "createdAt": Curriculum.created_at,
}
AVAILABILITY_FLAGS = {
    "inPrint": Curriculum.availability_in_print,
    "digital": Curriculum.availability_digital,
    "usedMarket": Curriculum.availability_used_market,
}
MAX_SUGGESTIONS = 10
DEFAULT_SUGGESTIONS = 8


def _like(term: str):
    return lambda column: column.icontains(term, autoescape=True)


def _has_element(column, term: str):
    # JSON list column holds an element equal to term, case included.
    # replace() is case-sensitive on SQLite and Postgres; LIKE is not.
    text = cast(column, String)
    return func.length(text) > func.length(func.replace(text, json.dumps(term), ""))


def search_predicate(term: str):
    like = _like(term)
    return or_(
        like(Curriculum.name),
        like(Curriculum.publisher),
        like(Curriculum.description),
        like(Curriculum.teaching_approach_style),
        like(Curriculum.teaching_approach_description),
        like(Curriculum.instruction_style_type),
        _has_element(Curriculum.strengths, term),
        _has_element(Curriculum.best_for, term),
        Curriculum.curriculum_subjects.any(CurriculumSubject.subject.has(like(Subject.name))),
    )


def facet_predicate(term: str):
    like = _like(term)
    return or_(
        like(Curriculum.name),
        like(Curriculum.publisher),
        like(Curriculum.description),
        like(Curriculum.teaching_approach_style),
        Curriculum.curriculum_subjects.any(CurriculumSubject.subject.has(like(Subject.name))),
    )


def filter_criteria(args) -> list:
    criteria = []

    grade_levels = multi_arg(args, "gradeLevel")
    if grade_levels:
        ids = [i for i in (id_or_none(v) for v in grade_levels) if i is not None]
        criteria.append(Curriculum.grade_level_id.in_(ids) if ids else false())

    subjects = multi_arg(args, "subjects", split=False)
    if subjects:
        criteria.append(subject_name_filter(subjects))

    approaches = multi_arg(args, "teachingApproach", split=False)
    if approaches:
        criteria.append(Curriculum.teaching_approach_style.in_(approaches))

    cost_ranges = multi_arg(args, "costRange", split=False)
    if cost_ranges:
        criteria.append(Curriculum.cost_price_range.in_(cost_ranges))

    min_rating = float_or_none(args.get("minRating"))
    if min_rating is not None:
        criteria.append(Curriculum.overall_rating >= min_rating)
    max_rating = float_or_none(args.get("maxRating"))
    if max_rating is not None:
        criteria.append(Curriculum.overall_rating <= max_rating)

    flags = [AVAILABILITY_FLAGS[v] for v in multi_arg(args, "availability") if v in AVAILABILITY_FLAGS]
    if flags:
        criteria.append(or_(*[flag.is_(True) for flag in flags]))
    return criteria


def db_order(sort_by: str, sort_order: str) -> list:
    if sort_by == "popularity":
        order = [ordered(Curriculum.review_count, sort_order), Curriculum.overall_rating.desc()]
    elif sort_by == "cost":
        order = [ordered(Curriculum.cost_price_range, sort_order)]
    elif sort_by == "relevance":
        # stand-in order; the page is re-ranked by relevance score afterwards
        order = [Curriculum.overall_rating.desc(), Curriculum.review_count.desc()]
    elif sort_by in NAMED_SORT_FIELDS:
        order = [ordered(NAMED_SORT_FIELDS[sort_by], sort_order)]
    else:
        order = [Curriculum.overall_rating.desc()]
    return order + [Curriculum.id.asc()]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_relevance_score(curriculum, term: str) -> int:
    """
    Weighted hits of `term` across the curriculum's fields, boosted by review
    volume and scaled by rating:

        name exact 50 / contains 25, each query word in name 15,
        publisher 10, description 2..8 (earlier is better), approach 12,
        instruction style 8, any subject 20, strengths 6, bestFor 8

    result = round((hits + min(reviews, 50) * 0.1) * (1 + rating * 0.1))
    """
    if not term:
        return 0
    t = term.lower()
    words = [w for w in t.split(" ") if w]
    name = (curriculum.name or "").lower()

    score = 0.0
    if name == t:
        score += 50
    elif t in name:
        score += 25
    score += 15 * sum(1 for w in words if w in name)

    if t in (curriculum.publisher or "").lower():
        score += 10

    position = (curriculum.description or "").lower().find(t)
    if position >= 0:
        score += max(8 - position // 50, 2)

    if t in (curriculum.teaching_approach_style or "").lower():
        score += 12
    if t in (curriculum.instruction_style_type or "").lower():
        score += 8
    if any(t in (s.name or "").lower() for s in curriculum.subjects):
        score += 20
    if any(t in item.lower() for item in (curriculum.strengths or [])):
        score += 6
    if any(t in item.lower() for item in (curriculum.best_for or [])):
        score += 8

    quality = 1 + (curriculum.overall_rating or 0) * 0.1
    review_boost = min(curriculum.review_count or 0, 50) * 0.1
    return _round_half_up((score + review_boost) * quality)


def calculate_popularity_score(curriculum) -> int:
    rating = curriculum.overall_rating or 0
    reviews = curriculum.review_count or 0
    return _round_half_up(rating * 20 + min(reviews * 2, 50))


def search_result(c: Curriculum, term: str) -> Dict:
    return {
        "id": c.id,
        "slug": c.slug,
        "name": c.name,
        "publisher": c.publisher,
        "description": c.description,
        "imageUrl": c.image_url,
        "gradeLevel": c.grade_level.to_dict() if c.grade_level else None,
        "subjects": [{"id": s.id, "name": s.name} for s in c.subjects],
        "teachingApproach": {"style": c.teaching_approach_style, "rating": c.teaching_approach_rating},
        "instructionStyle": {"type": c.instruction_style_type, "rating": c.instruction_style_rating},
        "cost": {"priceRange": c.cost_price_range, "rating": c.cost_rating, "value": c.cost_value},
        "timeCommitment": {
            "dailyMinutes": c.time_commitment_daily_minutes,
            "weeklyHours": c.time_commitment_weekly_hours,
            "flexibility": c.time_commitment_flexibility,
        },
        "availability": {
            "inPrint": c.availability_in_print,
            "digital": c.availability_digital,
            "usedMarket": c.availability_used_market,
        },
        "overallRating": c.overall_rating,
        "reviewCount": c.review_count,
        "strengths": list(c.strengths or [])[:3],
        "bestFor": list(c.best_for or [])[:3],
        "createdAt": to_iso(c.created_at),
        "relevanceScore": calculate_relevance_score(c, term),
        "popularityScore": calculate_popularity_score(c),
    }


def search(args) -> Tuple[str, List[Dict], Dict]:
    term = (args.get("q") or "").strip()
    if not term:
        raise ValidationError("Search query is required")
    page, limit = page_params(args)
    sort_by = args.get("sortBy") or "relevance"
    sort_order = "asc" if args.get("sortOrder") == "asc" else "desc"

    query = Curriculum.query.filter(search_predicate(term), *filter_criteria(args))
    total = query.order_by(None).count()
    rows = (
        with_relations(query)
        .order_by(*db_order(sort_by, sort_order))
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    results = [search_result(c, term) for c in rows]
    if sort_by == "relevance":
        # only the fetched page is re-ranked, not the whole result set
        results.sort(key=lambda r: r["relevanceScore"], reverse=(sort_order == "desc"))

    pages = total_pages(total, limit)
    pagination = {
        "page": page,
        "limit": limit,
        "totalCount": total,
        "totalPages": pages,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }
    return term, results, pagination


def suggest(*, q: Optional[str], limit: Optional[str] = None) -> List[Dict]:
    term = (q or "").strip()
    if len(term) < 2:
        return []
    cap = max(1, min(MAX_SUGGESTIONS, int_or_zero(limit) or DEFAULT_SUGGESTIONS))
    like = _like(term)

    curricula = (
        db.session.query(Curriculum.id, Curriculum.name, Curriculum.publisher,
                         Curriculum.overall_rating, Curriculum.review_count)
        .filter(or_(like(Curriculum.name), like(Curriculum.publisher)))
        .order_by(Curriculum.overall_rating.desc(), Curriculum.review_count.desc(), Curriculum.name.asc())
        .limit(math.ceil(cap * 0.6))
        .all()
    )

    link_count = func.count(CurriculumSubject.curriculum_id)
    subjects = (
        db.session.query(Subject.id, Subject.name, link_count.label("n"))
        .outerjoin(CurriculumSubject, CurriculumSubject.subject_id == Subject.id)
        .filter(like(Subject.name))
        .group_by(Subject.id, Subject.name)
        .order_by(link_count.desc(), Subject.name.asc())
        .limit(math.ceil(cap * 0.25))
        .all()
    )

    approaches = (
        db.session.query(Curriculum.teaching_approach_style)
        .filter(like(Curriculum.teaching_approach_style), Curriculum.teaching_approach_style != "")
        .distinct()
        .order_by(Curriculum.teaching_approach_style.asc())
        .limit(math.ceil(cap * 0.15))
        .all()
    )

    items = [
        {
            "id": cid,
            "type": "curriculum",
            "text": name,
            "subtitle": publisher,
            "metadata": {"rating": rating, "reviewCount": reviews},
        }
        for cid, name, publisher, rating, reviews in curricula
    ]
    items += [
        {
            "id": sid,
            "type": "subject",
            "text": name,
            "subtitle": f"Subject • {count} curricula",
            "metadata": {"curriculumCount": count},
        }
        for sid, name, count in subjects
    ]
    items += [
        {"id": style, "type": "approach", "text": style, "subtitle": "Teaching Approach", "metadata": {}}
        for (style,) in approaches
    ]
    return items[:cap]


def _approach_id(style: str) -> str:
    return re.sub(r"\s+", "-", style.lower())


def facet_counts(q: Optional[str]) -> Dict[str, List[Dict]]:
    term = (q or "").strip()
    criteria = [facet_predicate(term)] if term else []
    n = func.count(Curriculum.id)

    grade_levels = (
        db.session.query(GradeLevel.id, GradeLevel.name, GradeLevel.age_range, n)
        .join(Curriculum, Curriculum.grade_level_id == GradeLevel.id)
        .filter(*criteria)
        .group_by(GradeLevel.id, GradeLevel.name, GradeLevel.age_range)
        .order_by(n.desc(), GradeLevel.name.asc())
        .all()
    )

    # aliased so the EXISTS in the text predicate does not correlate to these joins
    subject, link = aliased(Subject), aliased(CurriculumSubject)
    subject_n = func.count(func.distinct(Curriculum.id))
    subjects = (
        db.session.query(subject.id, subject.name, subject_n)
        .join(link, link.subject_id == subject.id)
        .join(Curriculum, Curriculum.id == link.curriculum_id)
        .filter(*criteria)
        .group_by(subject.id, subject.name)
        .order_by(subject_n.desc(), subject.name.asc())
        .all()
    )

    approaches = (
        db.session.query(Curriculum.teaching_approach_style, n)
        .filter(Curriculum.teaching_approach_style.isnot(None), Curriculum.teaching_approach_style != "", *criteria)
        .group_by(Curriculum.teaching_approach_style)
        .order_by(n.desc(), Curriculum.teaching_approach_style.asc())
        .all()
    )

    cost_ranges = (
        db.session.query(Curriculum.cost_price_range, n)
        .filter(Curriculum.cost_price_range.isnot(None), Curriculum.cost_price_range != "", *criteria)
        .group_by(Curriculum.cost_price_range)
        .order_by(Curriculum.cost_price_range.asc())
        .all()
    )

    availability = []
    for key, label in (("inPrint", "In Print"), ("digital", "Digital Available"), ("usedMarket", "Used Market")):
        count = Curriculum.query.filter(AVAILABILITY_FLAGS[key].is_(True), *criteria).count()
        availability.append({"id": key, "name": label, "count": count})

    return {
        "gradeLevels": [
            {"id": gid, "name": name, "ageRange": age_range or "", "count": count}
            for gid, name, age_range, count in grade_levels
        ],
        "subjects": [{"id": sid, "name": name, "count": count} for sid, name, count in subjects],
        "teachingApproaches": [
            {"id": _approach_id(style), "name": style, "count": count} for style, count in approaches
        ],
        "costRanges": [{"id": rng.lower(), "name": rng, "count": count} for rng, count in cost_ranges],
        "availability": availability,
    }
