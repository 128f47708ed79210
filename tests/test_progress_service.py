# /tests/test_progress_service.py

from datetime import date

import pytest

from app.core.errors import AuthorizationError, NotFoundError
from app.models.grade_model import ConflictResolution
from app.models.progress_model import GradebookFilter, RowType
from app.services import grade_service, progress_service


def test_class_progress_lists_every_enrolled_student(db_service, alice, make_submission):
    grade_service.submit_grade(make_submission(marks_obtained=45, total_marks=90), db=db_service, auth=alice)
    grade_service.submit_grade(
        make_submission(topic_id="top_geo", marks_obtained=81, total_marks=90), db=db_service, auth=alice
    )

    rows = progress_service.get_class_progress("cls_10a", "term_autumn", db=db_service, auth=alice)

    assert [r.student_id for r in rows] == ["stu_1", "stu_2"]
    ava, ben = rows
    assert ava.total_grades == 2
    assert ava.low_point_count == 1
    assert ava.average_percentage == 70.0   # (50 + 90) / 2
    assert ava.course_name == "GCSE Mathematics"
    assert ava.status_label == "On Track"
    assert ben.total_grades == 0
    assert ben.average_percentage == 0.0
    assert ben.flag_level == 0


def test_class_progress_counts_retake_attempts(db_service, alice, make_submission):
    for _ in range(3):
        grade_service.submit_grade(
            make_submission(marks_obtained=10, resolution=ConflictResolution.RETAKE), db=db_service, auth=alice
        )

    ava = progress_service.get_class_progress("cls_10a", "term_autumn", db=db_service, auth=alice)[0]

    assert ava.low_point_count == 3
    assert ava.flag_level == 1
    assert ava.status_label == "Message Parents"


def test_admin_can_read_any_class(db_service, admin):
    rows = progress_service.get_class_progress("cls_10b", "term_autumn", db=db_service, auth=admin)
    assert {r.student_id for r in rows} == {"stu_1", "stu_3"}


def test_teacher_cannot_read_another_class(db_service, alice):
    with pytest.raises(AuthorizationError):
        progress_service.get_class_progress("cls_10b", "term_autumn", db=db_service, auth=alice)


def test_unknown_term_is_not_found(db_service, alice):
    with pytest.raises(NotFoundError):
        progress_service.get_class_progress("cls_10a", "term_missing", db=db_service, auth=alice)


def test_student_detail_groups_by_topic_and_subtopic(db_service, alice, make_submission):
    grade_service.submit_grade(
        make_submission(marks_obtained=45, assessed_date=date(2026, 9, 1)), db=db_service, auth=alice
    )
    grade_service.submit_grade(
        make_submission(marks_obtained=81, assessed_date=date(2026, 9, 20), resolution=ConflictResolution.RETAKE),
        db=db_service, auth=alice,
    )
    grade_service.submit_grade(
        make_submission(subtopic_id="sbt_linear", marks_obtained=63, assessed_date=date(2026, 9, 10)),
        db=db_service, auth=alice,
    )

    detail = progress_service.get_student_detail_progress("stu_1", "term_autumn", db=db_service, auth=alice)

    assert detail.overall.total_grades == 3
    assert detail.overall.total_low_points == 2
    assert [g.assessed_date for g in detail.timeline] == [date(2026, 9, 1), date(2026, 9, 10), date(2026, 9, 20)]

    by_key = {(t.topic_id, t.subtopic_id): t for t in detail.topic_performance}
    algebra = by_key[("top_alg", None)]
    assert algebra.topic_name == "Algebra"
    assert algebra.count == 2
    assert algebra.best == 90
    assert algebra.latest == 90
    assert algebra.average == 70.0
    assert algebra.low_point_count == 1

    linear = by_key[("top_alg", "sbt_linear")]
    assert linear.subtopic_name == "Linear equations"
    assert linear.latest == 70


def test_student_detail_with_no_grades(db_service, admin):
    detail = progress_service.get_student_detail_progress("stu_3", "term_autumn", db=db_service, auth=admin)
    assert detail.overall.total_grades == 0
    assert detail.topic_performance == []
    assert detail.status_label == "On Track"


# --- Gradebook ---

@pytest.fixture
def graded_student(db_service, alice, make_submission):
    """Ava in 10A: two classwork attempts on Algebra and one homework on Linear equations."""
    grade_service.submit_grade(
        make_submission(marks_obtained=45, assessed_date=date(2026, 9, 1)), db=db_service, auth=alice
    )
    grade_service.submit_grade(
        make_submission(marks_obtained=81, assessed_date=date(2026, 9, 20), resolution=ConflictResolution.RETAKE),
        db=db_service, auth=alice,
    )
    grade_service.submit_grade(
        make_submission(subtopic_id="sbt_linear", work_type="homework", marks_obtained=63,
                        homework_submitted=True, assessed_date=date(2026, 9, 10)),
        db=db_service, auth=alice,
    )


def test_gradebook_has_a_row_for_every_topic_and_subtopic(db_service, alice, graded_student):
    gradebook = progress_service.get_gradebook("cls_10a", "stu_1", "term_autumn", db=db_service, auth=alice)

    assert gradebook.course_id == "crs_math"
    assert gradebook.student_name == "Ava Patel"
    assert [(r.row_id, r.row_type) for r in gradebook.rows] == [
        ("topic-top_alg", RowType.TOPIC),
        ("subtopic-sbt_linear", RowType.SUBTOPIC),
        ("topic-top_geo", RowType.TOPIC),
    ]
    algebra, linear, geometry = gradebook.rows
    assert algebra.has_children is True
    assert [g.attempt_number for g in algebra.all_grades] == [2, 1]
    assert algebra.grade.percentage == 90
    assert linear.parent_topic_id == "top_alg"
    assert linear.grade.work_type == "homework"
    assert geometry.grade is None
    assert geometry.all_grades == []
    print("\n✅ SUCCESS: Gradebook lists ungraded topics alongside graded ones.")


@pytest.mark.parametrize("work_filter, expected", [
    (GradebookFilter.HOMEWORK, {"topic-top_alg": 0, "subtopic-sbt_linear": 1}),
    (GradebookFilter.CLASSWORK, {"topic-top_alg": 2, "subtopic-sbt_linear": 0}),
    (GradebookFilter.PASTPAPER, {"topic-top_alg": 0, "subtopic-sbt_linear": 0}),
])
def test_gradebook_work_filter(db_service, alice, graded_student, work_filter, expected):
    gradebook = progress_service.get_gradebook(
        "cls_10a", "stu_1", "term_autumn", db=db_service, auth=alice, work_filter=work_filter
    )
    counts = {r.row_id: len(r.all_grades) for r in gradebook.rows}
    assert {row_id: counts[row_id] for row_id in expected} == expected


def test_gradebook_for_student_outside_the_class(db_service, alice):
    with pytest.raises(NotFoundError):
        progress_service.get_gradebook("cls_10a", "stu_3", "term_autumn", db=db_service, auth=alice)


def test_gradebook_of_another_teachers_class(db_service, bob, admin):
    with pytest.raises(AuthorizationError):
        progress_service.get_gradebook("cls_10a", "stu_1", "term_autumn", db=db_service, auth=bob)
    science = progress_service.get_gradebook("cls_10b", "stu_1", "term_autumn", db=db_service, auth=admin)
    assert [r.topic_id for r in science.rows] == ["top_cells"]
