# /tests/test_dashboard_service.py

from datetime import date, datetime
from types import SimpleNamespace

import pandas as pd
import pytest

from app.db.models.reference_models import SchoolClass, Term
from app.models.grade_model import ConflictResolution
from app.services import dashboard_service, grade_service
from app.services.dashboard_helpers import aggregations


# --- Pure aggregations ---

@pytest.fixture
def snapshot():
    """Five grades across two classes and two subjects in one term."""
    rows = [
        # id,   student, class,  course,     term, percentage, low point, entered_by, created_at
        ("g1", "s1", "c1", "crs_math", "t1", 50, True, "tch_1", datetime(2026, 9, 1, 9)),
        ("g2", "s1", "c1", "crs_math", "t1", 60, True, "tch_1", datetime(2026, 9, 2, 9)),
        ("g3", "s1", "c1", "crs_math", "t1", 70, True, "tch_1", datetime(2026, 9, 3, 9)),
        ("g4", "s2", "c2", "crs_sci", "t1", 85, False, "tch_2", datetime(2026, 9, 4, 9)),
        ("g5", "s2", "c2", "crs_sci", "t1", 80, False, "tch_2", datetime(2026, 9, 5, 9)),
    ]
    columns = ["id", "student_id", "class_id", "course_id", "term_id", "percentage", "is_low_point",
               "entered_by", "created_at"]
    return pd.DataFrame(rows, columns=columns)


def test_institute_performance(snapshot):
    assert aggregations.institute_performance(snapshot) == {"institute_average": 69, "low_point_percentage": 60}


def test_institute_performance_of_empty_term():
    empty = pd.DataFrame(columns=["percentage", "is_low_point"])
    assert aggregations.institute_performance(empty) == {"institute_average": 0, "low_point_percentage": 0}


def test_grade_distribution_buckets(snapshot):
    """60 falls in the middle bucket and 80 in the top one."""
    assert aggregations.grade_distribution(snapshot) == {"below_60": 1, "between_60_and_80": 2, "above_80": 2}


def test_flag_breakdown_histograms_students(snapshot):
    assert aggregations.flag_breakdown(snapshot) == {"level_0": 1, "level_1": 1, "level_2": 0, "level_3": 0}


def test_class_performance_includes_empty_classes(snapshot):
    classes = [
        SimpleNamespace(id="c1", name="Maths A", teacher=SimpleNamespace(full_name="Alice")),
        SimpleNamespace(id="c2", name="Science B", teacher=SimpleNamespace(full_name="Bob")),
        SimpleNamespace(id="c3", name="Art C", teacher=None),
    ]
    enrollments = [
        SimpleNamespace(class_id="c1", student_id="s1"),
        SimpleNamespace(class_id="c1", student_id="s3"),
        SimpleNamespace(class_id="c2", student_id="s2"),
    ]

    rows = {r["class_id"]: r for r in aggregations.class_performance(snapshot, classes, enrollments)}

    assert rows["c1"]["student_count"] == 2
    assert rows["c1"]["grades_entered"] == 3
    assert rows["c1"]["average_percentage"] == 60
    assert rows["c1"]["low_point_count"] == 3
    assert rows["c2"]["average_percentage"] == 83   # 82.5 rounds half up
    assert rows["c3"] == {
        "class_id": "c3", "class_name": "Art C", "teacher_name": "Unassigned",
        "student_count": 0, "grades_entered": 0, "average_percentage": 0, "low_point_count": 0,
    }


def test_teacher_activity(snapshot):
    teachers = [SimpleNamespace(id="tch_1", full_name="Alice"), SimpleNamespace(id="tch_3", full_name="Cara")]
    classes = [SimpleNamespace(id="c1", teacher_id="tch_1"), SimpleNamespace(id="c4", teacher_id="tch_1")]

    rows = {r["teacher_id"]: r for r in aggregations.teacher_activity(snapshot, teachers, classes)}

    assert rows["tch_1"]["class_count"] == 2
    assert rows["tch_1"]["grades_entered"] == 3
    assert rows["tch_1"]["last_activity"] == datetime(2026, 9, 3, 9)
    assert rows["tch_3"]["grades_entered"] == 0
    assert rows["tch_3"]["last_activity"] is None


def test_subject_flag_totals_sum_levels_per_subject(snapshot):
    courses = [SimpleNamespace(id="crs_math", subject_id="sub_math"), SimpleNamespace(id="crs_sci", subject_id="sub_sci")]
    subjects = [SimpleNamespace(id="sub_math", name="Mathematics"), SimpleNamespace(id="sub_sci", name="Science")]

    rows = aggregations.subject_flag_totals(snapshot, courses, subjects)

    assert rows[0] == {"subject_id": "sub_math", "subject_name": "Mathematics", "flag_total": 1, "flagged_students": 1}
    assert rows[1]["flag_total"] == 0


def test_term_trends_follow_term_order(snapshot):
    later = snapshot.assign(term_id="t2", percentage=90, is_low_point=False)
    frame = pd.concat([snapshot, later], ignore_index=True)
    terms = [SimpleNamespace(id="t1", name="Autumn"), SimpleNamespace(id="t2", name="Spring"),
             SimpleNamespace(id="t3", name="Summer")]

    points = aggregations.term_trends(frame, terms)

    assert [p["term_id"] for p in points] == ["t1", "t2"]
    assert points[1] == {"term_id": "t2", "term_name": "Spring", "average_percentage": 90,
                         "low_point_percentage": 0, "grade_count": 5}


# --- Dashboard service ---

def _seed_grades(db_service, alice, bob, make_submission):
    for _ in range(3):
        grade_service.submit_grade(
            make_submission(marks_obtained=30, resolution=ConflictResolution.RETAKE), db=db_service, auth=alice
        )
    grade_service.submit_grade(
        make_submission(class_id="cls_10b", course_id="crs_sci", topic_id="top_cells", student_id="stu_3",
                        marks_obtained=85, total_marks=100),
        db=db_service, auth=bob,
    )


def test_admin_dashboard_for_active_term(db_service, admin, alice, bob, make_submission):
    _seed_grades(db_service, alice, bob, make_submission)

    dashboard = dashboard_service.get_admin_dashboard(db=db_service, auth=admin)

    assert dashboard.active_term.id == "term_autumn"
    assert dashboard.no_active_term is False
    assert dashboard.stats.total_students == 3
    assert dashboard.stats.total_teachers == 2
    assert dashboard.stats.total_grades == 4
    assert dashboard.flag_breakdown.level_1 == 1
    assert dashboard.flagged_count == 1
    assert dashboard.grade_distribution.above_80 == 1
    assert [c.class_id for c in dashboard.class_performance] == ["cls_10a", "cls_10b"]
    assert dashboard.subject_flags[0].subject_id == "sub_math"
    assert [t.term_id for t in dashboard.trends] == ["term_autumn"]
    assert len(dashboard.recent_activity) == 4
    print("\n✅ SUCCESS: Admin dashboard assembled from one term snapshot.")


def test_dashboard_falls_back_to_latest_created_term(db_session, db_service, admin):
    db_session.query(Term).update({Term.is_active: False})
    db_session.commit()

    dashboard = dashboard_service.get_admin_dashboard(db=db_service, auth=admin)

    assert dashboard.active_term.id == "term_autumn"


def test_dashboard_without_any_term(db_session, db_service, admin, alice):
    db_session.query(Term).delete()
    db_session.commit()

    admin_view = dashboard_service.get_admin_dashboard(db=db_service, auth=admin)
    teacher_view = dashboard_service.get_teacher_dashboard(db=db_service, auth=alice)

    assert admin_view.no_active_term is True
    assert admin_view.active_term is None
    assert admin_view.stats.total_grades == 0
    assert teacher_view.no_active_term is True
    assert teacher_view.class_count == 1


def test_teacher_dashboard_is_limited_to_own_classes(db_service, alice, bob, make_submission):
    _seed_grades(db_service, alice, bob, make_submission)

    dashboard = dashboard_service.get_teacher_dashboard(db=db_service, auth=alice)

    assert dashboard.class_count == 1
    assert dashboard.student_count == 2
    assert dashboard.grades_entered == 3
    assert dashboard.flagged_count == 1
    assert {g.class_name for g in dashboard.recent_grades} == {"10A Maths"}


def test_dashboard_is_cached_until_a_grade_changes(db_service, admin, alice, make_submission):
    first = dashboard_service.get_admin_dashboard(db=db_service, auth=admin)
    assert dashboard_service.get_admin_dashboard(db=db_service, auth=admin) is first

    grade_service.submit_grade(make_submission(), db=db_service, auth=alice)

    refreshed = dashboard_service.get_admin_dashboard(db=db_service, auth=admin)
    assert refreshed is not first
    assert refreshed.stats.total_grades == 1


def test_critical_students_are_top_level_only():
    frame = pd.DataFrame({
        "student_id": ["a"] * 5 + ["b"] * 6 + ["c"] * 4,
        "is_low_point": [True] * 15,
    })

    assert aggregations.critical_students(frame) == [
        {"student_id": "b", "low_point_count": 6, "flag_level": 3},
        {"student_id": "a", "low_point_count": 5, "flag_level": 3},
    ]
    assert [r["student_id"] for r in aggregations.critical_students(frame, limit=1)] == ["b"]
    assert aggregations.critical_students(pd.DataFrame(columns=["student_id", "is_low_point"])) == []


def test_teacher_dashboard_lists_class_performance_and_critical_students(db_service, alice, make_submission):
    for _ in range(5):
        grade_service.submit_grade(
            make_submission(marks_obtained=30, resolution=ConflictResolution.RETAKE), db=db_service, auth=alice
        )

    dashboard = dashboard_service.get_teacher_dashboard(db=db_service, auth=alice)

    assert [(c.class_id, c.student_count, c.grades_entered) for c in dashboard.class_performance] == [("cls_10a", 2, 5)]
    assert [(s.student_id, s.student_name, s.low_point_count) for s in dashboard.critical_students] == [
        ("stu_1", "Ava Patel", 5)
    ]


def test_teacher_grades_entered_counts_own_entries(db_session, db_service, alice, bob, make_submission):
    """A class handed to another teacher keeps its grades credited to whoever entered them."""
    grade_service.submit_grade(make_submission(), db=db_service, auth=alice)
    db_session.query(SchoolClass).filter(SchoolClass.id == "cls_10a").update({SchoolClass.teacher_id: "tch_bob"})
    db_session.commit()

    bob_view = dashboard_service.get_teacher_dashboard(db=db_service, auth=bob)
    alice_view = dashboard_service.get_teacher_dashboard(db=db_service, auth=alice)

    assert bob_view.grades_entered == 0
    assert {c.class_id for c in bob_view.class_performance} == {"cls_10a", "cls_10b"}
    assert alice_view.grades_entered == 1
    assert alice_view.class_count == 0
