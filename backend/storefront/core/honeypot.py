"""
Honeypot fields for public forms

The storefront renders these inputs hidden; a human never fills them. A
submission with any of them set is treated as a bot and discarded while the
client still receives the normal success response.
"""
from typing import Optional

from pydantic import BaseModel

HONEYPOT_FIELDS = ("website", "company2", "url", "homepage")


class HoneypotFields(BaseModel):
    """Mixin for request models exposed to public forms"""

    website: Optional[str] = None
    company2: Optional[str] = None
    url: Optional[str] = None
    homepage: Optional[str] = None

    def is_bot_submission(self) -> bool:
        return check_honeypot(self.model_dump(include=set(HONEYPOT_FIELDS)))


def check_honeypot(body: dict) -> bool:
    """True when any honeypot field carries a non-blank string"""
    for field in HONEYPOT_FIELDS:
        value = body.get(field)
        if isinstance(value, str) and value.strip():
            return True
    return False
