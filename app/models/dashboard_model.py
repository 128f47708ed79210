# /app/models/dashboard_model.py

# --- Core Imports ---
# Import the necessary components from Pydantic for data modeling.
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .flag_model import FlagBreakdown


# --- Model Definitions ---

class TermInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = False


class SystemStats(BaseModel):
    """Headline counts for the administrative dashboard."""
    total_students: int = Field(..., description="Every student on roll.", example=412)
    total_teachers: int = Field(..., description="Staff profiles with the teacher role.", example=23)
    total_classes: int = Field(..., example=38)
    total_courses: int = Field(..., example=14)
    total_grades: int = Field(..., description="Grades recorded in the dashboard's term.", example=5120)


class InstitutePerformance(BaseModel):
    institute_average: int = Field(..., description="Mean percentage over every grade in the term.", example=81)
    low_point_percentage: int = Field(..., description="Share of grades below the pass threshold.", example=22)


class ClassPerformance(BaseModel):
    class_id: str
    class_name: str
    teacher_name: str
    student_count: int
    grades_entered: int
    average_percentage: int
    low_point_count: int


class TeacherActivity(BaseModel):
    teacher_id: str
    teacher_name: str
    class_count: int
    grades_entered: int
    last_activity: Optional[datetime] = None


class SubjectFlagTotal(BaseModel):
    subject_id: str
    subject_name: str
    flag_total: int = Field(..., description="Sum of per-student flag levels within the subject.")
    flagged_students: int


class GradeDistribution(BaseModel):
    below_60: int = 0
    between_60_and_80: int = 0
    above_80: int = 0


class TrendPoint(BaseModel):
    term_id: str
    term_name: str
    average_percentage: int
    low_point_percentage: int
    grade_count: int


class RecentGradeActivity(BaseModel):
    grade_id: str
    teacher_name: str
    student_name: str
    class_name: str
    percentage: int
    is_low_point: bool
    created_at: Optional[datetime] = None


class AdminDashboard(BaseModel):
    """
    Defines the data contract for the administrative dashboard. Every widget
    is derived from the same term snapshot of grades, so the numbers agree
    with each other.
    """
    active_term: Optional[TermInfo] = None
    no_active_term: bool = False
    stats: SystemStats
    institute_performance: InstitutePerformance
    flag_breakdown: FlagBreakdown
    flagged_count: int
    class_performance: List[ClassPerformance] = Field(default_factory=list)
    teacher_activity: List[TeacherActivity] = Field(default_factory=list)
    subject_flags: List[SubjectFlagTotal] = Field(default_factory=list)
    grade_distribution: GradeDistribution
    trends: List[TrendPoint] = Field(default_factory=list)
    recent_activity: List[RecentGradeActivity] = Field(default_factory=list)


class CriticalStudent(BaseModel):
    student_id: str
    student_name: str
    low_point_count: int
    flag_level: int


class TeacherDashboard(BaseModel):
    """The teacher's own classes for one term."""
    active_term: Optional[TermInfo] = None
    no_active_term: bool = False
    class_count: int
    student_count: int
    grades_entered: int = Field(..., description="Grades in the term entered by this teacher.")
    flag_breakdown: FlagBreakdown
    flagged_count: int
    class_performance: List[ClassPerformance] = Field(default_factory=list)
    critical_students: List[CriticalStudent] = Field(default_factory=list)
    recent_grades: List[RecentGradeActivity] = Field(default_factory=list)
