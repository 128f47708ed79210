# /app/models/flag_model.py

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactType(str, Enum):
    MESSAGE = "message"
    CALL = "call"
    MEETING = "meeting"


class ContactStatus(str, Enum):
    PENDING = "pending"
    CONTACTED = "contacted"
    RESOLVED = "resolved"


class CohortScope(str, Enum):
    CLASS = "class"
    SUBJECT = "subject"
    TEACHER = "teacher"
    INSTITUTE = "institute"


class StudentFlag(BaseModel):
    student_id: str
    term_id: str
    low_point_count: int
    flag_level: int = Field(..., ge=0, le=3)
    intervention: str


class FlagBreakdown(BaseModel):
    """Histogram of students by flag level. Never a sum of low points."""
    level_0: int = 0
    level_1: int = 0
    level_2: int = 0
    level_3: int = 0

    @property
    def flagged_count(self) -> int:
        return self.level_1 + self.level_2 + self.level_3


class CohortFlagBreakdown(BaseModel):
    cohort_id: str
    cohort_name: Optional[str] = None
    breakdown: FlagBreakdown
    flagged_count: int


class ParentContact(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    term_id: str
    contact_type: ContactType
    status: ContactStatus
    notes: Optional[str] = None
    contacted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ContactStatusUpdate(BaseModel):
    student_id: str = Field(..., min_length=1)
    term_id: str = Field(..., min_length=1)
    contact_type: ContactType
    status: ContactStatus
    notes: Optional[str] = None


class FlaggedStudent(BaseModel):
    student_id: str
    student_name: str
    year_group: Optional[str] = None
    class_ids: List[str] = Field(default_factory=list)
    total_grades: int
    low_point_count: int
    average_percentage: float
    flag_level: int
    intervention: str
    contacted: bool
    contacts: List[ParentContact] = Field(default_factory=list)
