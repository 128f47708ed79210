# /app/services/access_control.py

"""
Ownership and existence checks shared by every service.

Policy: the target is always resolved first. A missing id raises
`NotFoundError`; an existing record the caller may not touch raises
`AuthorizationError`. Admins may read everything but never write grades;
teachers may read and write only within the classes they own.
"""

from typing import List, Optional

from ..core.deps import AuthContext, Role
from ..core.errors import AuthorizationError, NotFoundError, ValidationError
from .database_service import DatabaseService


def require_class_access(db: DatabaseService, class_id: str, auth: AuthContext, write: bool = False):
    school_class = db.get_class_by_id(class_id)
    if school_class is None:
        raise NotFoundError(f"Class with ID {class_id} not found.")
    if auth.is_admin and not write:
        return school_class
    if auth.role != Role.TEACHER:
        raise AuthorizationError("Only teachers can record or change grades.")
    if school_class.teacher_id != auth.user_id:
        raise AuthorizationError(f"Not authorized to access class {class_id}.")
    return school_class


def require_grade_write_access(db: DatabaseService, grade, auth: AuthContext):
    # The teacher who entered a grade may always change it.
    if auth.role == Role.TEACHER and grade.entered_by == auth.user_id:
        return
    require_class_access(db, grade.class_id, auth, write=True)


def require_grade(db: DatabaseService, grade_id: str):
    if not grade_id or not grade_id.strip():
        raise ValidationError("Invalid grade ID.")
    grade = db.get_grade(grade_id)
    if grade is None:
        raise NotFoundError(f"Grade with ID {grade_id} not found.")
    return grade


def require_term(db: DatabaseService, term_id: str):
    term = db.get_term_by_id(term_id)
    if term is None:
        raise NotFoundError(f"Term with ID {term_id} not found.")
    return term


def require_student(db: DatabaseService, student_id: str):
    student = db.get_student_by_id(student_id)
    if student is None:
        raise NotFoundError(f"Student with ID {student_id} not found.")
    return student


def require_enrollment(db: DatabaseService, class_id: str, student_id: str, course_id: Optional[str] = None):
    """The student must study `course_id` in the class; a grade is never filed under another course."""
    enrollment = db.get_enrollment(class_id, student_id, course_id=course_id)
    if enrollment is None:
        if course_id and db.get_enrollment(class_id, student_id) is not None:
            raise ValidationError(f"Student {student_id} does not study course {course_id} in class {class_id}.")
        raise ValidationError(f"Student {student_id} is not enrolled in class {class_id}.")
    return enrollment


# --- Curriculum references in a submission ---
# Unknown ids in a request body raise ValidationError, not NotFoundError.

def require_course(db: DatabaseService, course_id: str):
    course = db.get_course_by_id(course_id)
    if course is None:
        raise ValidationError(f"Unknown course {course_id}.")
    return course


def require_topic(db: DatabaseService, topic_id: str, subject_id: Optional[str] = None):
    topic = db.get_topic_by_id(topic_id)
    if topic is None:
        raise ValidationError(f"Unknown topic {topic_id}.")
    if subject_id and topic.subject_id != subject_id:
        raise ValidationError(f"Topic {topic_id} is not part of the course's subject.")
    return topic


def require_subtopic(db: DatabaseService, subtopic_id: str, topic_id: str):
    subtopic = db.get_subtopic_by_id(subtopic_id)
    if subtopic is None:
        raise ValidationError(f"Unknown subtopic {subtopic_id}.")
    if subtopic.topic_id != topic_id:
        raise ValidationError(f"Subtopic {subtopic_id} does not belong to topic {topic_id}.")
    return subtopic


def require_curriculum(db: DatabaseService, course_id: str, topic_id: str, subtopic_id: Optional[str]):
    course = require_course(db, course_id)
    require_topic(db, topic_id, subject_id=course.subject_id)
    if subtopic_id:
        require_subtopic(db, subtopic_id, topic_id)
    return course


def teacher_class_ids(db: DatabaseService, auth: AuthContext) -> Optional[List[str]]:
    """Classes the caller is limited to, or None for admins (no limit)."""
    if auth.is_admin:
        return None
    return [c.id for c in db.get_classes(teacher_id=auth.user_id)]


def require_student_access(db: DatabaseService, student_id: str, auth: AuthContext):
    """Teachers may only look at students enrolled in one of their classes."""
    student = require_student(db, student_id)
    class_ids = teacher_class_ids(db, auth)
    if class_ids is None:
        return student
    enrolled = {e.student_id for e in db.get_enrollments(class_ids=class_ids)}
    if student_id not in enrolled:
        raise AuthorizationError(f"Not authorized to view student {student_id}.")
    return student
