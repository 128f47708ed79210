# /app/models/grade_model.py

# --- Core Imports ---
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# --- Enumerations ---

class WorkType(str, Enum):
    CLASSWORK = "classwork"
    HOMEWORK = "homework"


class WorkSubtype(str, Enum):
    WORKSHEET = "worksheet"
    PASTPAPER = "pastpaper"


class ConflictResolution(str, Enum):
    """The teacher's answer when a grade already exists for the same key."""
    REPLACE = "replace"
    RETAKE = "retake"
    SKIP = "skip"


class SubmissionOutcome(str, Enum):
    CREATED = "created"
    REPLACED = "replaced"
    RETAKEN = "retaken"
    SKIPPED = "skipped"
    CONFLICTED = "conflicted"
    DEFERRED = "deferred"
    FAILED = "failed"


# --- Request Models ---

class GradeCreate(BaseModel):
    """
    A single raw score for one student against one topic (or subtopic).
    Percentage and low-point status are never accepted from the client; they
    are always derived server-side.
    """
    student_id: str = Field(..., min_length=1)
    class_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    term_id: str = Field(..., min_length=1)
    topic_id: str = Field(..., min_length=1)
    subtopic_id: Optional[str] = Field(default=None, description="Omit to grade at topic level.")
    work_type: WorkType
    work_subtype: WorkSubtype
    marks_obtained: float = Field(..., ge=0)
    total_marks: float = Field(..., ge=1)
    assessed_date: date
    notes: Optional[str] = None
    homework_submitted: Optional[bool] = Field(
        default=None,
        description="Only meaningful for homework; ignored for classwork."
    )


class GradeSubmission(GradeCreate):
    """Individual entry. `resolution` answers a previously reported conflict."""
    resolution: Optional[ConflictResolution] = None


class BatchGradeEntry(BaseModel):
    student_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    marks_obtained: float = Field(..., ge=0)
    notes: Optional[str] = None
    homework_submitted: Optional[bool] = None
    resolution: Optional[ConflictResolution] = None


class BatchGradeSubmission(BaseModel):
    """One assessment given to many students of the same class."""
    class_id: str = Field(..., min_length=1)
    term_id: str = Field(..., min_length=1)
    topic_id: str = Field(..., min_length=1)
    subtopic_id: Optional[str] = None
    work_type: WorkType
    work_subtype: WorkSubtype
    total_marks: float = Field(..., ge=1)
    assessed_date: date
    entries: List[BatchGradeEntry] = Field(..., min_length=1)


class GradeUpdate(BaseModel):
    """
    Inline gradebook edit. All fields are optional to allow partial updates;
    lineage fields are deliberately absent.
    """
    marks_obtained: Optional[float] = Field(default=None, ge=0)
    total_marks: Optional[float] = Field(default=None, ge=1)
    work_type: Optional[WorkType] = None
    work_subtype: Optional[WorkSubtype] = None
    assessed_date: Optional[date] = None
    homework_submitted: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("marks_obtained", "total_marks", "work_type", "work_subtype", "assessed_date")
    @classmethod
    def required_columns_cannot_be_cleared(cls, v, info):
        # Only runs for fields the client sent; omitting a field keeps its value.
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null.")
        return v


class RetakeCreate(BaseModel):
    """A new attempt on an existing grade's key. Work type/subtype default to the original's."""
    marks_obtained: float = Field(..., ge=0)
    total_marks: float = Field(..., ge=1)
    assessed_date: date
    work_type: Optional[WorkType] = None
    work_subtype: Optional[WorkSubtype] = None
    notes: Optional[str] = None


class ReassignRequest(BaseModel):
    new_deadline: date
    notes: Optional[str] = None


class GradeFilters(BaseModel):
    term_id: Optional[str] = None
    class_id: Optional[str] = None
    course_id: Optional[str] = None
    student_id: Optional[str] = None
    work_type: Optional[WorkType] = None
    work_subtype: Optional[WorkSubtype] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


# --- Response Models ---

class Grade(BaseModel):
    """The full representation of a Grade resource."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    student_id: str
    class_id: str
    course_id: str
    term_id: str
    topic_id: str
    subtopic_id: Optional[str] = None
    work_type: WorkType
    work_subtype: WorkSubtype
    marks_obtained: float
    total_marks: float
    percentage: int
    is_low_point: bool
    attempt_number: int
    is_retake: bool
    is_reassigned: bool
    original_grade_id: Optional[str] = None
    assessed_date: date
    notes: Optional[str] = None
    homework_submitted: Optional[bool] = None
    entered_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GradeSubmissionResult(BaseModel):
    """
    Result of an individual submission. A `conflicted` outcome carries the
    existing records so the client can ask the teacher to replace, add a
    retake, or skip.
    """
    outcome: SubmissionOutcome
    grade: Optional[Grade] = None
    existing_grades: List[Grade] = Field(default_factory=list)
    message: Optional[str] = None


class BatchEntryResult(BaseModel):
    student_id: str
    outcome: SubmissionOutcome
    grade_id: Optional[str] = None
    existing_grade_ids: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class BatchSummary(BaseModel):
    created: int = 0
    replaced: int = 0
    retaken: int = 0
    skipped: int = 0
    conflicted: int = 0
    deferred: int = 0
    failed: int = 0


class BatchSubmissionResult(BaseModel):
    results: List[BatchEntryResult]
    summary: BatchSummary
    awaiting_resolution_for: Optional[str] = Field(
        default=None,
        description="Student whose conflict stopped the batch; later students were not processed."
    )
