"""
Contact Repository - Data Access Layer for contact form messages
"""
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.domain.contact import ContactMessage
from storefront.models import ContactMessage as ContactMessageRow


class ContactRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, **fields) -> ContactMessage:
        row = ContactMessageRow(**fields)
        self.session.add(row)
        self.session.flush()
        return ContactMessage.model_validate(row)

    def find_all(
        self,
        email: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[ContactMessage], int]:
        """
        Newest messages first

        Returns:
            Tuple of (list of messages, total count)
        """
        conditions = []
        if email:
            conditions.append(func.lower(ContactMessageRow.email) == email.lower())

        total = self.session.execute(
            select(func.count()).select_from(ContactMessageRow).where(*conditions)
        ).scalar_one()

        rows = self.session.execute(
            select(ContactMessageRow)
            .where(*conditions)
            .order_by(ContactMessageRow.created_at.desc(), ContactMessageRow.id)
            .limit(limit)
            .offset(offset)
        ).scalars().all()

        return [ContactMessage.model_validate(row) for row in rows], total
