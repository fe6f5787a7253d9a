from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Curriculum, CurriculumSubject, GradeLevel, Subject


@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        middle = GradeLevel(name="Middle School (6-8)", age_range="11-14 years", min_age=11, max_age=14)
        preschool = GradeLevel(name="Preschool", age_range="3-5 years", min_age=3, max_age=5)
        math = Subject(name="Mathematics", description="Numbers")
        science = Subject(name="Science")
        db.session.add_all([middle, preschool, math, science])
        db.session.flush()
        for i, (style, cost) in enumerate([("Classical", "$$"), ("Classical", "$"), ("Montessori", "$$")]):
            c = Curriculum(slug=f"c-{i}", name=f"C {i}", publisher="P", description="d",
                           grade_level_id=middle.id, teaching_approach_style=style, cost_price_range=cost)
            c.curriculum_subjects = [CurriculumSubject(subject_id=math.id)]
            db.session.add(c)
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def test_subjects_with_counts(client):
    r = client.get("/api/categories/subjects")
    assert r.status_code == 200
    subjects = r.get_json()["data"]["subjects"]
    assert [(s["name"], s["curriculumCount"]) for s in subjects] == [("Mathematics", 3), ("Science", 0)]
    assert subjects[0]["description"] == "Numbers"


def test_grade_levels_ordered_by_min_age(client):
    grades = client.get("/api/categories/grade-levels").get_json()["data"]["gradeLevels"]
    assert [g["name"] for g in grades] == ["Preschool", "Middle School (6-8)"]
    assert grades[0]["minAge"] == 3 and grades[0]["curriculumCount"] == 0
    assert grades[1]["curriculumCount"] == 3


def test_teaching_approaches_by_count(client):
    approaches = client.get("/api/categories/teaching-approaches").get_json()["data"]["teachingApproaches"]
    assert approaches == [
        {"name": "Classical", "curriculumCount": 2},
        {"name": "Montessori", "curriculumCount": 1},
    ]


def test_cost_ranges_ascending(client):
    ranges = client.get("/api/categories/cost-ranges").get_json()["data"]["costRanges"]
    assert ranges == [{"range": "$", "curriculumCount": 1}, {"range": "$$", "curriculumCount": 2}]


def test_all_categories(client):
    data = client.get("/api/categories").get_json()["data"]
    assert set(data) == {"subjects", "gradeLevels", "teachingApproaches", "costRanges"}
