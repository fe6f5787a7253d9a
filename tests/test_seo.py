from __future__ import annotations
import pytest

from app import create_app
from extensions import db
from models import Curriculum, GradeLevel


@pytest.fixture()
def client():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        grade = GradeLevel(name="Preschool")
        db.session.add(grade)
        db.session.flush()
        db.session.add(Curriculum(slug="math-u-see-by-math-u-see", name="Math-U-See", publisher="Math-U-See",
                                  description="d", grade_level_id=grade.id))
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def test_sitemap_lists_static_pages_and_curricula(client):
    r = client.get("/sitemap.xml")
    assert r.status_code == 200
    assert r.mimetype == "application/xml"
    assert r.headers["Cache-Control"] == "public, max-age=3600"
    body = r.get_data(as_text=True)
    assert body.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert "<loc>https://shelftaught.test</loc>" in body
    assert "<loc>https://shelftaught.test/browse</loc>" in body
    assert "<loc>https://shelftaught.test/curriculum/math-u-see-by-math-u-see</loc>" in body
    assert body.count("<url>") == 6


def test_robots_txt(client):
    r = client.get("/robots.txt")
    assert r.status_code == 200
    body = r.get_data(as_text=True)
    assert body.startswith("User-agent: *\nAllow: /")
    assert "Sitemap: https://shelftaught.test/sitemap.xml" in body
    assert body.endswith("Crawl-delay: 1")
