from __future__ import annotations
import pytest

from app import create_app
from blueprints.admin.schemas import dedupe, parse_curriculum
from blueprints.admin.services import ModerationQueue
from blueprints.auth.tokens import generate_token
from errors import ValidationError
from extensions import db
from models import Curriculum, CurriculumSubject, GradeLevel, Role, SavedCurriculum, Subject, User


@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        admin = User(email="admin@example.com", password_hash="x", first_name="Ada", last_name="Admin",
                     role=Role.ADMIN.value)
        parent = User(email="parent@example.com", password_hash="x", first_name="Sarah", last_name="Johnson")
        grade = GradeLevel(name="Elementary (K-5)", age_range="5-11 years", min_age=5, max_age=11)
        math = Subject(name="Mathematics")
        phonics = Subject(name="Phonics")
        db.session.add_all([admin, parent, grade, math, phonics])
        db.session.commit()
        app.config["IDS"] = {
            "admin": admin.id, "parent": parent.id, "grade": grade.id, "math": math.id, "phonics": phonics.id,
        }
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def _headers(user_id, role="ADMIN"):
    token = generate_token({"userId": user_id, "email": "someone@example.com", "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(app):
    return _headers(app.config["IDS"]["admin"])


def _payload(app, **overrides):
    ids = app.config["IDS"]
    body = {
        "name": "Math Mammoth",
        "publisher": "Taina Maths",
        "description": "Mastery-oriented worktexts",
        "gradeLevelId": ids["grade"],
        "subjectIds": [ids["math"]],
        "targetAgeGradeRating": 4,
        "teachingApproachRating": 5,
        "costRating": 3,
        "costPriceRange": "$",
        "strengths": ["Inexpensive"],
    }
    body.update(overrides)
    return body


def _create(app, client, headers, **overrides):
    r = client.post("/api/admin/curricula", json=_payload(app, **overrides), headers=headers)
    assert r.status_code == 201, r.get_json()
    return r.get_json()["data"]["curriculum"]


# ---------- access ----------

def test_admin_routes_need_token(client):
    r = client.get("/api/admin/curricula")
    assert r.status_code == 401
    assert r.get_json()["error"]["code"] == "AUTHENTICATION_ERROR"


def test_admin_routes_forbid_regular_users(app, client):
    r = client.get("/api/admin/analytics", headers=_headers(app.config["IDS"]["parent"], "USER"))
    assert r.status_code == 403
    assert r.get_json()["error"] == {"code": "AUTHORIZATION_ERROR", "message": "Admin access required"}


def test_role_comes_from_database_not_token(app, client):
    # a USER holding a token that claims ADMIN is still refused
    r = client.get("/api/admin/users", headers=_headers(app.config["IDS"]["parent"], "ADMIN"))
    assert r.status_code == 403


# ---------- create ----------

def test_create_curriculum(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    assert c["slug"] == "math-mammoth-by-taina-maths"
    assert c["overallRating"] == 4.0
    assert c["reviewCount"] == 1
    assert [s["name"] for s in c["subjectsCovered"]["subjects"]] == ["Mathematics"]
    assert c["strengths"] == ["Inexpensive"]
    assert c["availability"]["inPrint"] is True


def test_create_colliding_slug_gets_suffix(app, client, admin_headers):
    first = _create(app, client, admin_headers)
    second = _create(app, client, admin_headers)
    third = _create(app, client, admin_headers)
    assert first["slug"] == "math-mammoth-by-taina-maths"
    assert second["slug"] == "math-mammoth-by-taina-maths-1"
    assert third["slug"] == "math-mammoth-by-taina-maths-2"


def test_create_requires_fields(client, admin_headers):
    r = client.post("/api/admin/curricula", json={"publisher": "X"}, headers=admin_headers)
    assert r.status_code == 400
    errors = r.get_json()["error"]["details"]["errors"]
    assert "Name is required" in errors
    assert "Description is required" in errors
    assert "Grade level ID is required" in errors


def test_create_rejects_out_of_range_rating(app, client, admin_headers):
    r = client.post("/api/admin/curricula", json=_payload(app, costRating=6), headers=admin_headers)
    assert r.status_code == 400
    assert any(e.startswith("costRating") for e in r.get_json()["error"]["details"]["errors"])


def test_create_invalid_grade_level(app, client, admin_headers):
    r = client.post("/api/admin/curricula", json=_payload(app, gradeLevelId=999), headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["message"] == "Invalid grade level ID"


def test_create_invalid_subject_rejects_whole_request(app, client, admin_headers):
    ids = app.config["IDS"]
    r = client.post("/api/admin/curricula", json=_payload(app, subjectIds=[ids["math"], 999]),
                    headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["message"] == "One or more subject IDs are invalid"
    assert Curriculum.query.count() == 0


def test_create_rejects_ids_beyond_integer_range(app, client, admin_headers):
    huge = 10**20
    r = client.post("/api/admin/curricula", json=_payload(app, gradeLevelId=huge), headers=admin_headers)
    assert r.status_code == 400
    r = client.post("/api/admin/curricula", json=_payload(app, subjectIds=[huge]), headers=admin_headers)
    assert r.status_code == 400
    assert Curriculum.query.count() == 0


def test_routes_with_ids_beyond_integer_range_are_404(client, admin_headers):
    huge = "99999999999999999999"
    assert client.put(f"/api/admin/curricula/{huge}", json={"name": "X"}, headers=admin_headers).status_code == 404
    assert client.delete(f"/api/admin/curricula/{huge}", headers=admin_headers).status_code == 404
    assert client.delete(f"/api/admin/users/{huge}", headers=admin_headers).status_code == 404


def test_create_rejects_names_too_long_for_a_slug(app, client, admin_headers):
    r = client.post("/api/admin/curricula", json=_payload(app, name="a" * 150, publisher="b" * 150),
                    headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["details"]["errors"] == ["Name and publisher are too long to build a URL slug"]
    assert Curriculum.query.count() == 0


def test_create_without_ratings_has_zero_overall(app, client, admin_headers):
    body = _payload(app)
    for key in ("targetAgeGradeRating", "teachingApproachRating", "costRating"):
        body.pop(key)
    r = client.post("/api/admin/curricula", json=body, headers=admin_headers)
    assert r.status_code == 201
    assert r.get_json()["data"]["curriculum"]["overallRating"] == 0


# ---------- update ----------

def test_update_partial_and_rating_recomputed(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    r = client.put(f"/api/admin/curricula/{c['id']}", json={"costRating": 5}, headers=admin_headers)
    assert r.status_code == 200
    updated = r.get_json()["data"]["curriculum"]
    assert updated["overallRating"] == pytest.approx(14 / 3)
    assert updated["name"] == "Math Mammoth"
    assert updated["slug"] == c["slug"]
    assert updated["strengths"] == ["Inexpensive"]


def test_update_name_regenerates_slug(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    r = client.put(f"/api/admin/curricula/{c['id']}", json={"name": "Math Mammoth Blue"}, headers=admin_headers)
    assert r.get_json()["data"]["curriculum"]["slug"] == "math-mammoth-blue-by-taina-maths"


def test_update_same_name_keeps_slug(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    r = client.put(f"/api/admin/curricula/{c['id']}", json={"name": "Math Mammoth"}, headers=admin_headers)
    assert r.get_json()["data"]["curriculum"]["slug"] == "math-mammoth-by-taina-maths"


def test_update_replaces_subjects(app, client, admin_headers):
    ids = app.config["IDS"]
    c = _create(app, client, admin_headers)
    r = client.put(f"/api/admin/curricula/{c['id']}", json={"subjectIds": [ids["phonics"], ids["phonics"]]},
                   headers=admin_headers)
    assert r.status_code == 200
    names = [s["name"] for s in r.get_json()["data"]["curriculum"]["subjectsCovered"]["subjects"]]
    assert names == ["Phonics"]
    assert CurriculumSubject.query.count() == 1

    r = client.put(f"/api/admin/curricula/{c['id']}", json={"subjectIds": []}, headers=admin_headers)
    assert r.get_json()["data"]["curriculum"]["subjectsCovered"]["subjects"] == []
    assert CurriculumSubject.query.count() == 0
    assert Subject.query.count() == 2


def test_update_rejects_null_for_required_field(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    r = client.put(f"/api/admin/curricula/{c['id']}", json={"name": None}, headers=admin_headers)
    assert r.status_code == 400


def test_update_missing_404(client, admin_headers):
    r = client.put("/api/admin/curricula/4242", json={"name": "X Y"}, headers=admin_headers)
    assert r.status_code == 404
    assert r.get_json()["error"]["message"] == "Curriculum not found"


# ---------- delete ----------

def test_delete_cascades(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    db.session.add(SavedCurriculum(user_id=app.config["IDS"]["parent"], curriculum_id=c["id"]))
    db.session.commit()

    r = client.delete(f"/api/admin/curricula/{c['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["data"] == {"id": c["id"]}
    db.session.expire_all()
    assert Curriculum.query.count() == 0
    assert CurriculumSubject.query.count() == 0
    assert SavedCurriculum.query.count() == 0
    assert User.query.count() == 2

    r = client.delete(f"/api/admin/curricula/{c['id']}", headers=admin_headers)
    assert r.status_code == 404


# ---------- listing ----------

def test_admin_list_with_save_count(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    _create(app, client, admin_headers, name="Singapore Math", publisher="Marshall Cavendish")
    db.session.add(SavedCurriculum(user_id=app.config["IDS"]["parent"], curriculum_id=c["id"]))
    db.session.commit()

    r = client.get("/api/admin/curricula?sortBy=name&sortOrder=asc", headers=admin_headers)
    data = r.get_json()["data"]
    assert [row["name"] for row in data["curricula"]] == ["Math Mammoth", "Singapore Math"]
    assert [row["saveCount"] for row in data["curricula"]] == [1, 0]
    assert data["pagination"] == {"currentPage": 1, "totalPages": 1, "totalItems": 2, "itemsPerPage": 10}

    r = client.get("/api/admin/curricula?search=cavendish", headers=admin_headers)
    assert [row["name"] for row in r.get_json()["data"]["curricula"]] == ["Singapore Math"]


# ---------- analytics ----------

def test_analytics(app, client, admin_headers):
    a = _create(app, client, admin_headers)
    b = _create(app, client, admin_headers, name="Singapore Math", publisher="Marshall Cavendish",
                costRating=1)
    db.session.add(SavedCurriculum(user_id=app.config["IDS"]["parent"], curriculum_id=b["id"]))
    db.session.commit()

    r = client.get("/api/admin/analytics", headers=admin_headers)
    assert r.status_code == 200
    data = r.get_json()["data"]["analytics"]
    assert data["overview"] == {
        "totalCurricula": 2, "totalUsers": 2, "totalSavedCurricula": 1, "totalSubjects": 2, "totalGradeLevels": 1,
    }
    assert data["recentActivity"] == {"newCurricula": 2, "newUsers": 2, "newSaves": 1}
    assert [c["id"] for c in data["topPerforming"]["topRatedCurricula"]] == [a["id"], b["id"]]
    most_saved = data["topPerforming"]["mostSavedCurricula"]
    assert most_saved[0]["id"] == b["id"] and most_saved[0]["saveCount"] == 1
    assert data["distribution"]["byGradeLevel"][0]["curriculumCount"] == 2
    by_subject = {s["name"]: s["curriculumCount"] for s in data["distribution"]["bySubject"]}
    assert by_subject == {"Mathematics": 2, "Phonics": 0}
    assert data["averageRatings"]["cost"] == 2.0
    assert data["averageRatings"]["availability"] == 0


# ---------- users ----------

def test_list_users_with_filters(app, client, admin_headers):
    db.session.add(SavedCurriculum(
        user_id=app.config["IDS"]["parent"],
        curriculum_id=_create(app, client, admin_headers)["id"],
    ))
    db.session.commit()

    r = client.get("/api/admin/users?sortBy=email&sortOrder=asc", headers=admin_headers)
    users = r.get_json()["data"]["users"]
    assert [u["email"] for u in users] == ["admin@example.com", "parent@example.com"]
    assert [u["savedCount"] for u in users] == [0, 1]

    r = client.get("/api/admin/users?role=ADMIN", headers=admin_headers)
    assert [u["email"] for u in r.get_json()["data"]["users"]] == ["admin@example.com"]

    r = client.get("/api/admin/users?role=all&search=johns", headers=admin_headers)
    assert [u["lastName"] for u in r.get_json()["data"]["users"]] == ["Johnson"]


def test_update_user_role(app, client, admin_headers):
    parent_id = app.config["IDS"]["parent"]
    r = client.put(f"/api/admin/users/{parent_id}", json={"role": "ADMIN"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["data"]["user"]["role"] == "ADMIN"

    r = client.put(f"/api/admin/users/{parent_id}", json={"role": "OWNER"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.get_json()["error"]["message"] == "Valid role is required (USER or ADMIN)"

    r = client.put("/api/admin/users/999", json={"role": "USER"}, headers=admin_headers)
    assert r.status_code == 404


def test_delete_user_cascades_saved(app, client, admin_headers):
    c = _create(app, client, admin_headers)
    parent_id = app.config["IDS"]["parent"]
    db.session.add(SavedCurriculum(user_id=parent_id, curriculum_id=c["id"]))
    db.session.commit()

    r = client.delete(f"/api/admin/users/{parent_id}", headers=admin_headers)
    assert r.status_code == 200
    db.session.expire_all()
    assert User.query.count() == 1
    assert SavedCurriculum.query.count() == 0
    assert Curriculum.query.count() == 1


# ---------- moderation ----------

def test_moderation_stub(client, admin_headers):
    r = client.get("/api/admin/moderation", headers=admin_headers)
    assert r.status_code == 200
    assert r.get_json()["data"]["items"] == []

    r = client.put("/api/admin/moderation/1", json={"status": "banana"}, headers=admin_headers)
    assert r.status_code == 400
    r = client.put("/api/admin/moderation/1", json={"status": "approved"}, headers=admin_headers)
    assert r.status_code == 404


def test_moderation_queue_from_config(app, client, admin_headers):
    app.config["MODERATION_ITEMS"] = [{"id": 7, "type": "review", "status": "pending"}]
    items = client.get("/api/admin/moderation", headers=admin_headers).get_json()["data"]["items"]
    assert items == [{"id": 7, "type": "review", "status": "pending"}]

    r = client.put("/api/admin/moderation/7", json={"status": "rejected"}, headers=admin_headers)
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["status"] == "rejected" and data["updatedAt"].endswith("Z")
    items = client.get("/api/admin/moderation", headers=admin_headers).get_json()["data"]["items"]
    assert items[0]["status"] == "rejected"


def test_moderation_queue_copies_seed_items():
    seed = [{"id": "1", "status": "pending"}]
    queue = ModerationQueue(seed)
    queue.set_status("1", "approved")
    assert seed[0]["status"] == "pending"


# ---------- schema ----------

def test_parse_curriculum_partial_only_sets_present_keys():
    patch = parse_curriculum({"costRating": 2, "bestFor": ["Visual learners"]}, partial=True)
    assert patch.changes() == {"cost_rating": 2, "best_for": ["Visual learners"]}


def test_parse_curriculum_strict_types():
    with pytest.raises(ValidationError):
        parse_curriculum({"costRating": "5"}, partial=True)
    with pytest.raises(ValidationError):
        parse_curriculum({"availabilityDigital": "yes"}, partial=True)


def test_dedupe_keeps_order():
    assert dedupe([3, 1, 3, 2, 1]) == [3, 1, 2]
    assert dedupe(None) == []
