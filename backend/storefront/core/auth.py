"""
Authentication for admin-facing operations

Two schemes are accepted behind a single `require_admin` dependency:
- SessionAuth: HS256 JWT issued at login, sent as the `admin_session`
  cookie or as `Authorization: Bearer <token>`
- ApiKeyAuth: `X-API-Key` header, compared against SHA-256 digests from
  configuration
"""
import hashlib
import logging
import secrets
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from fastapi import Request
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from storefront.core.config import Settings
from storefront.core.errors import Unauthorized

logger = logging.getLogger(__name__)

# Password hashing context for the admin account
pwd_context = CryptContext(schemes=["bcrypt", "pbkdf2_sha256"], deprecated="auto")


class AdminPrincipal(BaseModel):
    """Authenticated admin identity"""
    id: str
    email: Optional[str] = None
    method: str


def hash_api_key(key: str) -> str:
    """Hash an API key using SHA-256"""
    return hashlib.sha256(key.encode()).hexdigest()


class Authenticator(ABC):
    """
    One admin authentication scheme.

    `authenticate` returns None when the request carries no credentials for
    this scheme and raises Unauthorized when it carries invalid ones.
    """

    @abstractmethod
    def authenticate(self, request: Request) -> Optional[AdminPrincipal]: ...


class SessionAuth(Authenticator):
    COOKIE_NAME = "admin_session"
    ALGORITHM = "HS256"

    def __init__(self, secret: str, ttl_hours: int = 24 * 7):
        self.secret = secret
        self.ttl_seconds = ttl_hours * 3600

    def issue_token(self, email: str) -> str:
        if not self.secret:
            raise ValueError("AUTH_SECRET is not configured")

        now = int(time.time())
        claims = {
            "sub": email,
            "email": email,
            "role": "admin",
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(claims, self.secret, algorithm=self.ALGORITHM)

    def decode_token(self, token: str) -> dict:
        if not self.secret:
            raise Unauthorized("Admin sessions are not configured")
        try:
            return jwt.decode(token, self.secret, algorithms=[self.ALGORITHM])
        except ExpiredSignatureError:
            raise Unauthorized("Session has expired")
        except JWTError:
            raise Unauthorized("Invalid session")

    def _extract_token(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[len("Bearer "):].strip() or None
        return request.cookies.get(self.COOKIE_NAME)

    def authenticate(self, request: Request) -> Optional[AdminPrincipal]:
        token = self._extract_token(request)
        if not token:
            return None

        payload = self.decode_token(token)
        email = payload.get("email") or payload.get("sub")
        if not email or payload.get("role") != "admin":
            raise Unauthorized("Invalid session")

        return AdminPrincipal(id=payload.get("sub", email), email=email, method="session")


class ApiKeyAuth(Authenticator):
    HEADER = "X-API-Key"

    def __init__(self, key_hashes: List[str]):
        self.key_hashes = [digest.lower() for digest in key_hashes]

    def authenticate(self, request: Request) -> Optional[AdminPrincipal]:
        api_key = request.headers.get(self.HEADER)
        if not api_key:
            return None

        digest = hash_api_key(api_key)
        for known in self.key_hashes:
            if secrets.compare_digest(digest, known):
                return AdminPrincipal(id=f"api_key:{digest[:12]}", method="api_key")

        logger.warning("Rejected admin request with unknown API key")
        raise Unauthorized("Invalid API key")


class CompositeAuthenticator(Authenticator):
    """First scheme that recognises the request wins"""

    def __init__(self, *authenticators: Authenticator):
        self.authenticators = authenticators

    def authenticate(self, request: Request) -> Optional[AdminPrincipal]:
        for authenticator in self.authenticators:
            principal = authenticator.authenticate(request)
            if principal is not None:
                return principal
        return None


def build_authenticator(settings: Settings) -> CompositeAuthenticator:
    return CompositeAuthenticator(
        SessionAuth(settings.AUTH_SECRET, settings.ADMIN_SESSION_TTL_HOURS),
        ApiKeyAuth(settings.get_api_key_hashes()),
    )


def verify_admin_credentials(settings: Settings, email: str, password: str) -> bool:
    """Check login credentials against the configured admin account"""
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD_HASH:
        logger.error("Admin login attempted but ADMIN_EMAIL / ADMIN_PASSWORD_HASH are not configured")
        return False

    if email.strip().lower() != settings.ADMIN_EMAIL.strip().lower():
        return False

    try:
        return pwd_context.verify(password, settings.ADMIN_PASSWORD_HASH)
    except ValueError as e:
        logger.error(f"ADMIN_PASSWORD_HASH is not a recognised hash: {e}")
        return False


async def require_admin(request: Request) -> AdminPrincipal:
    """
    Dependency guarding every admin route.

    Usage:
        @router.patch("/orders/{order_id}/status")
        def update_status(..., admin: AdminPrincipal = Depends(require_admin)):
            ...
    """
    authenticator: Authenticator = request.app.state.authenticator
    principal = authenticator.authenticate(request)
    if principal is None:
        raise Unauthorized()
    return principal
