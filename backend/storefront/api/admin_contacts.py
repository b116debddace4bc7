"""
Admin Contact Messages API Endpoint
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from storefront.core.auth import require_admin
from storefront.core.dependencies import get_contact_inbox
from storefront.services.contact_service import ContactInbox

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/contacts")
def list_contacts(
    email: Optional[str] = Query(None, description="Filter by sender email"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    inbox: ContactInbox = Depends(get_contact_inbox),
):
    messages, total = inbox.list(email=email, limit=limit, offset=offset)
    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(messages),
        "data": [message.to_dict() for message in messages],
    }
