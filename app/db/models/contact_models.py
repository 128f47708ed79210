# /app/db/models/contact_models.py

"""
ORM model for the parent-contact log. A row records the intervention taken
for a flagged student in a term (message, call or meeting) and how far it
has progressed.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from ..base_class import Base


class ParentContact(Base):
    __tablename__ = "parent_contacts"
    __table_args__ = (
        UniqueConstraint("student_id", "term_id", "contact_type", name="uq_parent_contact"),
    )

    id = Column(String, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("students.id"), nullable=False, index=True)
    term_id = Column(String, ForeignKey("terms.id"), nullable=False, index=True)
    contact_type = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    notes = Column(String, nullable=True)
    contacted_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
