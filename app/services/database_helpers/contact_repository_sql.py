# /app/services/database_helpers/contact_repository_sql.py

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List

from sqlalchemy.orm import Session

from app.db.models.contact_models import ParentContact


class ContactRepositorySQL:
    def __init__(self, db_session: Session):
        self.db = db_session

    def get_contacts(self, term_id: str, student_ids: Iterable[str]) -> List[ParentContact]:
        student_ids = list(student_ids)
        if not student_ids:
            return []
        return (
            self.db.query(ParentContact)
            .filter(ParentContact.term_id == term_id, ParentContact.student_id.in_(student_ids))
            .all()
        )

    def upsert_contact(self, record: Dict) -> ParentContact:
        """Insert or update the single contact row for (student, term, contact type)."""
        contact = (
            self.db.query(ParentContact)
            .filter(
                ParentContact.student_id == record["student_id"],
                ParentContact.term_id == record["term_id"],
                ParentContact.contact_type == record["contact_type"],
            )
            .first()
        )
        if contact is None:
            contact = ParentContact(id=f"pct_{uuid.uuid4().hex[:12]}", **record)
            self.db.add(contact)
        else:
            for key, value in record.items():
                setattr(contact, key, value)
        contact.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(contact)
        return contact
