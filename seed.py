"""
Idempotent seed script.
Usage:
  python seed.py --reset         # drop and recreate the database, then load the demo data
  python seed.py --ensure-admin  # create only the admin account (no demo data)
  python seed.py                 # soft seed: add whatever is missing
"""
import argparse
import os

from app import create_app
from blueprints.auth.tokens import hash_password
from blueprints.curricula.slugs import create_curriculum_slug
from extensions import db
from models import Curriculum, CurriculumSubject, GradeLevel, Role, Subject, User

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "AdminPass1")

SUBJECTS = [
    ("Language Arts", "Reading, writing, grammar, and literature instruction"),
    ("Mathematics", "Arithmetic, algebra, geometry, and mathematical reasoning"),
    ("Science", "Biology, chemistry, physics, and earth sciences"),
    ("History", "World history, American history, and social studies"),
    ("Phonics", "Letter sounds, decoding, and reading fundamentals"),
]

GRADE_LEVELS = [
    ("Preschool", "3-5 years", 3, 5),
    ("Elementary (K-5)", "5-11 years", 5, 11),
    ("Middle School (6-8)", "11-14 years", 11, 14),
]

CURRICULA = [
    {
        "name": "Logic of English Foundations",
        "publisher": "Logic of English",
        "description": "A comprehensive phonics and spelling program that teaches the logic behind English "
                       "spelling and reading through multi-sensory methods.",
        "grade": "Elementary (K-5)",
        "subjects": ["Language Arts", "Phonics"],
        "target_age_grade_rating": 5,
        "teaching_approach_style": "Orton-Gillingham Multi-sensory",
        "teaching_approach_description": "Uses visual, auditory, and kinesthetic learning methods with "
                                         "systematic phonics instruction",
        "teaching_approach_rating": 5,
        "subject_comprehensiveness": 4,
        "subjects_covered_rating": 4,
        "materials_components": ["Teacher's Manual", "Student Workbooks", "Phonogram Cards",
                                 "Spelling Rule Cards", "Games and Activities", "Assessment Tools"],
        "materials_completeness": 5,
        "materials_included_rating": 5,
        "instruction_style_type": "Parent-led with structured lessons",
        "instruction_support_level": 4,
        "instruction_style_rating": 4,
        "time_commitment_daily_minutes": 30,
        "time_commitment_weekly_hours": 2.5,
        "time_commitment_flexibility": 4,
        "time_commitment_rating": 4,
        "cost_price_range": "$$",
        "cost_value": 4,
        "cost_rating": 3,
        "strengths": ["Excellent for struggling readers", "Teaches spelling rules systematically",
                      "Multi-sensory approach", "Strong teacher support", "Research-based methodology"],
        "weaknesses": ["Can be intensive for some children", "Requires parent preparation time",
                       "Higher cost investment", "May be too structured for some learning styles"],
        "best_for": ["Children with dyslexia", "Struggling readers", "Visual and kinesthetic learners",
                     "Families wanting systematic phonics", "Children who need spelling help"],
        "availability_in_print": True,
        "availability_digital": True,
        "availability_used_market": True,
        "availability_rating": 5,
    },
    {
        "name": "Math-U-See",
        "publisher": "Math-U-See",
        "description": "A mastery-based math curriculum using manipulatives and visual learning methods.",
        "grade": "Elementary (K-5)",
        "subjects": ["Mathematics"],
        "target_age_grade_rating": 5,
        "teaching_approach_style": "Mastery-based with manipulatives",
        "teaching_approach_description": "Focuses on understanding concepts before moving to abstract thinking",
        "teaching_approach_rating": 5,
        "subject_comprehensiveness": 5,
        "subjects_covered_rating": 5,
        "materials_components": ["Instruction Manual", "Student Text", "Test Booklet",
                                 "Manipulative Blocks", "DVD Instruction"],
        "materials_completeness": 5,
        "materials_included_rating": 5,
        "instruction_style_type": "Video-based with parent support",
        "instruction_support_level": 5,
        "instruction_style_rating": 5,
        "time_commitment_daily_minutes": 45,
        "time_commitment_weekly_hours": 3.75,
        "time_commitment_flexibility": 5,
        "time_commitment_rating": 4,
        "cost_price_range": "$$",
        "cost_value": 4,
        "cost_rating": 4,
        "strengths": ["Excellent for visual learners", "Builds strong foundation", "Self-paced learning",
                      "Great manipulatives", "Clear video instruction"],
        "weaknesses": ["Can be slow for advanced students", "Limited word problems",
                       "Repetitive for some children", "Requires storage space for manipulatives"],
        "best_for": ["Visual learners", "Children who struggle with abstract concepts",
                     "Families wanting mastery-based approach", "Students who need concrete examples"],
        "availability_in_print": True,
        "availability_digital": False,
        "availability_used_market": True,
        "availability_rating": 4,
    },
    {
        "name": "Sonlight Core A",
        "publisher": "Sonlight Curriculum",
        "description": "Literature-based curriculum covering history, geography, and language arts "
                       "through living books.",
        "grade": "Elementary (K-5)",
        "subjects": ["Language Arts", "History"],
        "target_age_grade_rating": 4,
        "teaching_approach_style": "Charlotte Mason / Living Books",
        "teaching_approach_description": "Uses real books and literature to teach across multiple subjects",
        "teaching_approach_rating": 5,
        "subject_comprehensiveness": 4,
        "subjects_covered_rating": 4,
        "materials_components": ["Instructor's Guide", "Read-Aloud Books", "Readers",
                                 "Timeline Figures", "Map Work"],
        "materials_completeness": 4,
        "materials_included_rating": 4,
        "instruction_style_type": "Parent-led read-aloud intensive",
        "instruction_support_level": 3,
        "instruction_style_rating": 4,
        "time_commitment_daily_minutes": 90,
        "time_commitment_weekly_hours": 7.5,
        "time_commitment_flexibility": 3,
        "time_commitment_rating": 2,
        "cost_price_range": "$$$",
        "cost_value": 4,
        "cost_rating": 3,
        "strengths": ["Rich literature exposure", "Integrated approach", "Develops love of reading",
                      "Strong historical foundation", "Excellent book selection"],
        "weaknesses": ["Very time-intensive", "Heavy reading load for parents", "Expensive",
                       "May not suit all learning styles", "Requires dedicated parent time"],
        "best_for": ["Families who love reading", "Children who enjoy stories",
                     "Parents with time to read aloud", "Literature-loving families"],
        "availability_in_print": True,
        "availability_digital": False,
        "availability_used_market": True,
        "availability_rating": 4,
    },
]


def get_or_create(model, defaults=None, **by):
    """Find by unique keys, create with defaults otherwise."""
    inst = db.session.query(model).filter_by(**by).first()
    if inst:
        return inst, False
    data = dict(defaults or {})
    data.update(by)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True


# ---- reference data ----
def seed_reference_data():
    subjects = {}
    for name, description in SUBJECTS:
        subjects[name], _ = get_or_create(Subject, defaults={"description": description}, name=name)

    grades = {}
    for name, age_range, min_age, max_age in GRADE_LEVELS:
        grades[name], _ = get_or_create(
            GradeLevel, defaults={"age_range": age_range, "min_age": min_age, "max_age": max_age}, name=name
        )
    db.session.commit()
    return subjects, grades


def seed_curricula(subjects, grades):
    created = 0
    for entry in CURRICULA:
        data = dict(entry)
        grade = grades[data.pop("grade")]
        subject_names = data.pop("subjects")
        slug = create_curriculum_slug(data["name"], data["publisher"])
        if Curriculum.query.filter_by(slug=slug).first():
            continue
        curriculum = Curriculum(slug=slug, grade_level_id=grade.id, review_count=1, **data)
        curriculum.curriculum_subjects = [CurriculumSubject(subject_id=subjects[n].id) for n in subject_names]
        curriculum.recompute_overall_rating()
        db.session.add(curriculum)
        created += 1
    db.session.commit()
    return created


# ---- users ----
def ensure_user(email, password, first_name, last_name, role):
    if User.query.filter_by(email=email).first():
        return False
    db.session.add(User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
    ))
    db.session.commit()
    return True


def ensure_admin():
    return ensure_user(ADMIN_EMAIL, ADMIN_PASSWORD, "Admin", "User", Role.ADMIN.value)


def ensure_sample_user():
    return ensure_user("parent@example.com", "Password123", "Sarah", "Johnson", Role.USER.value)


def seed_all():
    subjects, grades = seed_reference_data()
    created = seed_curricula(subjects, grades)
    ensure_admin()
    ensure_sample_user()
    return created


# ---- main ----
def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    parser.add_argument("--ensure-admin", action="store_true", help="create only the admin account")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            db.drop_all()
            db.create_all()
            created = seed_all()
            print(f"[seed] reset+seed complete, {created} curricula")
            return

        if args.ensure_admin:
            created = ensure_admin()
            print("Admin created." if created else "Admin already exists.")
            return

        # default: soft seed of whatever is missing
        db.create_all()
        created = seed_all()
        print(f"[seed] soft seed complete, {created} new curricula")

if __name__ == "__main__":
    main()
