# /app/db/models/reference_models.py

"""
This module defines the SQLAlchemy ORM models for the reference entities the
grade engine reads but never writes: teachers, students, the curriculum
(subjects, courses, topics, subtopics), classes with their enrolments, and
academic terms.

These tables are owned by the curriculum, roster and term management
surfaces. The grade engine only resolves them by id.
"""

from sqlalchemy import Column, String, Boolean, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..base_class import Base


class Teacher(Base):
    """A staff profile. `role` is either 'teacher' or 'admin'."""
    id = Column(String, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="teacher", index=True)

    classes = relationship("SchoolClass", back_populates="teacher")


class Student(Base):
    id = Column(String, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    year_group = Column(String, nullable=True)


class Subject(Base):
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)


class Course(Base):
    """A qualification/board-specific offering of a subject."""
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    subject_id = Column(String, ForeignKey("subjects.id"), nullable=False, index=True)

    subject = relationship("Subject")


class SchoolClass(Base):
    """
    A teaching group. Owned by exactly one teacher; ownership of the class
    is what authorises a teacher to record grades for its students.
    """
    __tablename__ = "classes"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    teacher_id = Column(String, ForeignKey("teachers.id"), nullable=True, index=True)

    teacher = relationship("Teacher", back_populates="classes")
    enrollments = relationship("Enrollment", back_populates="class_")


class Enrollment(Base):
    """A student studying a course inside a class."""
    __table_args__ = (UniqueConstraint("class_id", "student_id", "course_id", name="uq_enrollment"),)

    id = Column(String, primary_key=True, index=True)
    class_id = Column(String, ForeignKey("classes.id"), nullable=False, index=True)
    student_id = Column(String, ForeignKey("students.id"), nullable=False, index=True)
    course_id = Column(String, ForeignKey("courses.id"), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now())

    class_ = relationship("SchoolClass", back_populates="enrollments")
    student = relationship("Student")
    course = relationship("Course")


class Term(Base):
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Topic(Base):
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    subject_id = Column(String, ForeignKey("subjects.id"), nullable=False, index=True)


class Subtopic(Base):
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    topic_id = Column(String, ForeignKey("topics.id"), nullable=False, index=True)
