# /app/models/progress_model.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .grade_model import Grade


class StudentProgressSummary(BaseModel):
    """One row of the class-progress view: a student in a class for a term."""
    student_id: str
    student_name: str
    year_group: Optional[str] = None
    course_name: Optional[str] = None
    total_grades: int
    low_point_count: int
    flag_level: int
    status_label: str
    average_percentage: float


class OverallStats(BaseModel):
    total_grades: int
    total_low_points: int
    average_percentage: float


class TopicPerformance(BaseModel):
    topic_id: str
    subtopic_id: Optional[str] = None
    topic_name: str
    subtopic_name: Optional[str] = None
    count: int
    best: int
    latest: int
    average: float
    low_point_count: int


class StudentDetailProgress(BaseModel):
    student_id: str
    student_name: str
    term_id: str
    overall: OverallStats
    flag_level: int
    status_label: str
    topic_performance: List[TopicPerformance] = Field(default_factory=list)
    timeline: List[Grade] = Field(default_factory=list)


# --- Gradebook ---

class GradebookFilter(str, Enum):
    """Narrows the gradebook by work type (classwork/homework) or subtype (worksheet/pastpaper)."""
    ALL = "all"
    CLASSWORK = "classwork"
    HOMEWORK = "homework"
    WORKSHEET = "worksheet"
    PASTPAPER = "pastpaper"


class RowType(str, Enum):
    TOPIC = "topic"
    SUBTOPIC = "subtopic"


class GradebookRow(BaseModel):
    """
    One editable line of a student's gradebook. `grade` is the latest entry
    for the row; `all_grades` holds every attempt, newest first.
    """
    row_id: str
    row_type: RowType
    topic_id: str
    subtopic_id: Optional[str] = None
    parent_topic_id: Optional[str] = None
    name: str
    has_children: bool = False
    grade: Optional[Grade] = None
    all_grades: List[Grade] = Field(default_factory=list)


class Gradebook(BaseModel):
    class_id: str
    class_name: str
    student_id: str
    student_name: str
    course_id: str
    course_name: str
    term_id: str
    work_filter: GradebookFilter = GradebookFilter.ALL
    rows: List[GradebookRow] = Field(default_factory=list)
