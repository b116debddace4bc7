"""
Admin Auth API Endpoints
Login/logout for the admin session cookie
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel, EmailStr, Field

from storefront.core.auth import AdminPrincipal, SessionAuth, require_admin, verify_admin_credentials
from storefront.core.config import Settings
from storefront.core.dependencies import get_settings
from storefront.core.errors import Unauthorized
from storefront.core.rate_limit import get_client_ip, rate_limit

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


@router.post("/login")
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    _: None = Depends(rate_limit("default")),
):
    """Exchange admin credentials for a session (cookie + bearer token)"""
    if not verify_admin_credentials(settings, str(body.email), body.password):
        logger.warning(f"Failed admin login for {body.email} from {get_client_ip(request)}")
        raise Unauthorized("Invalid email or password")

    session_auth = SessionAuth(settings.AUTH_SECRET, settings.ADMIN_SESSION_TTL_HOURS)
    try:
        token = session_auth.issue_token(str(body.email).lower())
    except ValueError:
        logger.error("Admin login succeeded but AUTH_SECRET is not configured")
        raise Unauthorized("Admin sessions are not configured")

    response.set_cookie(
        SessionAuth.COOKIE_NAME,
        token,
        max_age=session_auth.ttl_seconds,
        httponly=True,
        secure=not settings.API_DEBUG,
        samesite="lax",
        path="/",
    )
    logger.info(f"Admin {body.email} logged in")
    return {"status": "success", "data": {"token": token, "expires_in": session_auth.ttl_seconds}}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(SessionAuth.COOKIE_NAME, path="/")
    return {"status": "success"}


@router.get("/me")
async def me(admin: AdminPrincipal = Depends(require_admin)):
    return {"status": "success", "data": admin.model_dump()}
