# /app/db/base.py

# Model registry. Importing every model module here puts all tables on
# Base.metadata, which Alembic autogenerate and create_all both read.

from .base_class import Base

from .models.reference_models import Teacher, Student, Subject, Course, SchoolClass, Enrollment, Term, Topic, Subtopic
from .models.grade_models import Grade
from .models.contact_models import ParentContact
