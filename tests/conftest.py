# /tests/conftest.py

"""
Shared fixtures: a fresh in-memory SQLite database per test, seeded with a
small school (two teachers, one admin, two classes, three students, two
terms), plus ready-made identities and a FastAPI TestClient bound to the same
session.
"""

import os
from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the suite from writing log files; must be set before app.core.config loads.
os.environ["LOG_TO_FILES"] = "false"

from app.core.deps import AuthContext, Role
from app.db.base import Base
from app.db.database import enable_sqlite_foreign_keys, get_db
from app.db.models.reference_models import (
    Course, Enrollment, SchoolClass, Student, Subject, Subtopic, Teacher, Term, Topic
)
from app.main import app
from app.models import grade_model
from app.services.cache_service import dashboard_cache
from app.services.database_service import DatabaseService


def _seed(session):
    session.add_all([
        Teacher(id="tch_alice", full_name="Alice Morgan", role="teacher"),
        Teacher(id="tch_bob", full_name="Bob Singh", role="teacher"),
        Teacher(id="adm_root", full_name="Head Office", role="admin"),
        Subject(id="sub_math", name="Mathematics"),
        Subject(id="sub_sci", name="Science"),
    ])
    session.flush()
    session.add_all([
        Course(id="crs_math", name="GCSE Mathematics", subject_id="sub_math"),
        Course(id="crs_sci", name="GCSE Science", subject_id="sub_sci"),
        SchoolClass(id="cls_10a", name="10A Maths", teacher_id="tch_alice"),
        SchoolClass(id="cls_10b", name="10B Science", teacher_id="tch_bob"),
        Student(id="stu_1", name="Ava Patel", year_group="Year 10"),
        Student(id="stu_2", name="Ben Okafor", year_group="Year 10"),
        Student(id="stu_3", name="Chloe Ng", year_group="Year 10"),
        Term(id="term_summer", name="Summer 2026", start_date=date(2026, 4, 1), is_active=False,
             created_at=datetime(2026, 3, 1)),
        Term(id="term_autumn", name="Autumn 2026", start_date=date(2026, 9, 1), is_active=True,
             created_at=datetime(2026, 8, 1)),
        Topic(id="top_alg", name="Algebra", subject_id="sub_math"),
        Topic(id="top_geo", name="Geometry", subject_id="sub_math"),
        Topic(id="top_cells", name="Cells", subject_id="sub_sci"),
    ])
    session.flush()
    session.add_all([
        Subtopic(id="sbt_linear", name="Linear equations", topic_id="top_alg"),
        Enrollment(id="enr_1", class_id="cls_10a", student_id="stu_1", course_id="crs_math"),
        Enrollment(id="enr_2", class_id="cls_10a", student_id="stu_2", course_id="crs_math"),
        Enrollment(id="enr_3", class_id="cls_10b", student_id="stu_1", course_id="crs_sci"),
        Enrollment(id="enr_4", class_id="cls_10b", student_id="stu_3", course_id="crs_sci"),
    ])
    session.commit()


@pytest.fixture
def db_session():
    """A brand new, seeded in-memory database for each test function."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    _seed(session)
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_service(db_session):
    return DatabaseService(db_session=db_session)


@pytest.fixture(autouse=True)
def clear_dashboard_cache():
    dashboard_cache.invalidate()
    yield
    dashboard_cache.invalidate()


# --- Identities ---

@pytest.fixture
def alice():
    return AuthContext(user_id="tch_alice", role=Role.TEACHER)


@pytest.fixture
def bob():
    return AuthContext(user_id="tch_bob", role=Role.TEACHER)


@pytest.fixture
def admin():
    return AuthContext(user_id="adm_root", role=Role.ADMIN)


# --- Request builders ---

@pytest.fixture
def make_submission():
    """Builds a GradeSubmission for Alice's class with sensible defaults."""
    def _make(**overrides):
        fields = {
            "student_id": "stu_1",
            "class_id": "cls_10a",
            "course_id": "crs_math",
            "term_id": "term_autumn",
            "topic_id": "top_alg",
            "subtopic_id": None,
            "work_type": "classwork",
            "work_subtype": "worksheet",
            "marks_obtained": 72,
            "total_marks": 90,
            "assessed_date": date(2026, 9, 15),
        }
        fields.update(overrides)
        return grade_model.GradeSubmission(**fields)
    return _make


# --- HTTP ---

@pytest.fixture
def client(db_session):
    """TestClient whose requests share the test's database session."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def alice_headers():
    return {"X-User-Id": "tch_alice", "X-User-Role": "teacher"}


@pytest.fixture
def bob_headers():
    return {"X-User-Id": "tch_bob", "X-User-Role": "teacher"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "adm_root", "X-User-Role": "admin"}
