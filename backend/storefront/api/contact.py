"""
Contact API Endpoint
Public contact and quote request form
"""
import logging
import uuid

from fastapi import APIRouter, Depends, status

from storefront.core.dependencies import get_contact_inbox
from storefront.core.rate_limit import rate_limit
from storefront.domain.contact import ContactRequest
from storefront.services.contact_service import ContactInbox

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/contact", status_code=status.HTTP_201_CREATED)
def submit_contact(
    body: ContactRequest,
    inbox: ContactInbox = Depends(get_contact_inbox),
    _: None = Depends(rate_limit("contact")),
):
    if body.is_bot_submission():
        logger.info("Honeypot triggered on contact form, submission discarded")
        return {"status": "success", "data": {"message_id": uuid.uuid4().hex}}

    message = inbox.submit(body)
    return {"status": "success", "data": {"message_id": message.id}}
