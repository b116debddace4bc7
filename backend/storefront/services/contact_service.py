"""
Contact Inbox
Stores contact form messages and notifies the studio
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.database import session_scope
from storefront.core.errors import InfrastructureError
from storefront.domain.contact import ContactMessage, ContactRequest
from storefront.domain.notification import NotificationEvent
from storefront.repositories.contact_repository import ContactRepository

logger = logging.getLogger(__name__)


class ContactInbox:
    def __init__(self, session_factory, dispatcher):
        self.session_factory = session_factory
        self.dispatcher = dispatcher

    def submit(self, request: ContactRequest) -> ContactMessage:
        try:
            with session_scope(self.session_factory) as session:
                message = ContactRepository(session).add(
                    first_name=request.first_name,
                    last_name=request.last_name,
                    email=str(request.email),
                    phone=request.phone,
                    project_type=request.project_type,
                    budget=request.budget,
                    message=request.message,
                )
        except SQLAlchemyError as e:
            logger.exception(f"Contact message from {request.email} failed: {e}")
            raise InfrastructureError() from e

        logger.info(f"Contact message {message.id} received from {message.email}")
        self.dispatcher.enqueue(NotificationEvent.contact_message(message))
        return message

    def list(
        self,
        email: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[ContactMessage], int]:
        try:
            with session_scope(self.session_factory) as session:
                return ContactRepository(session).find_all(email=email, limit=limit, offset=offset)
        except SQLAlchemyError as e:
            logger.exception(f"Contact message listing failed: {e}")
            raise InfrastructureError() from e
