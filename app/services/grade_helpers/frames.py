# /app/services/grade_helpers/frames.py

from typing import List

import pandas as pd

GRADE_COLUMNS = [
    "id", "student_id", "class_id", "course_id", "term_id", "topic_id", "subtopic_id",
    "work_type", "work_subtype", "marks_obtained", "total_marks", "percentage", "is_low_point",
    "attempt_number", "is_retake", "is_reassigned", "original_grade_id", "assessed_date",
    "entered_by", "created_at",
]


def grades_to_frame(grades: List) -> pd.DataFrame:
    """
    One row per Grade ORM object. The column set is fixed so that an empty
    snapshot still groups and filters like a populated one.
    """
    rows = [{column: getattr(g, column) for column in GRADE_COLUMNS} for g in grades]
    df = pd.DataFrame(rows, columns=GRADE_COLUMNS)
    if not df.empty:
        df["percentage"] = pd.to_numeric(df["percentage"])
        df["is_low_point"] = df["is_low_point"].astype(bool)
    return df
