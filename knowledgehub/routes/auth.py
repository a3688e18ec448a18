"""
Admin authentication routes for KnowledgeHub.
Email/password login against the users table, with signed session cookies.
"""

import logging
import os
import secrets
import warnings
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from knowledgehub.db.database import get_db
from knowledgehub.db.models import User
from knowledgehub.routes.pages import templates
from knowledgehub.services import users as users_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["auth"])

# Session configuration
SESSION_COOKIE_NAME = "kh_session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days in seconds
CSRF_COOKIE_NAME = "kh_csrf_token"
DEFAULT_NEXT = "/admin/posts"

# Rate limiter for login attempts
limiter = Limiter(key_func=get_remote_address)

# Security: Get secret key from environment
SECRET_KEY = os.getenv("KH_SECRET_KEY")
IS_PRODUCTION = os.getenv("KH_ENV", "development") == "production"

if not SECRET_KEY:
    if IS_PRODUCTION:
        raise RuntimeError("KH_SECRET_KEY must be set in production environment")
    warnings.warn("KH_SECRET_KEY not set - using random key (sessions won't persist across restarts)")
    SECRET_KEY = secrets.token_hex(32)

serializer = URLSafeTimedSerializer(SECRET_KEY, salt="kh-session")


def create_session_token(user: User) -> str:
    """Create a signed session token for a user."""
    data = {
        "user_id": user.id,
        "created_at": datetime.utcnow().isoformat()
    }
    return serializer.dumps(data)


def read_session_token(token: str) -> Optional[str]:
    """Return the user id from a valid, unexpired token."""
    try:
        data = serializer.loads(token, max_age=SESSION_MAX_AGE)
    except (BadSignature, SignatureExpired):
        return None
    return data.get("user_id")


def get_current_user(request: Request, db: Session) -> Optional[User]:
    """Return the signed-in user, if the request carries a valid session."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    user_id = read_session_token(token)
    if not user_id:
        return None
    return users_service.get_user(db, user_id)


def require_author(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency for JSON write endpoints: 401 without a session."""
    user = get_current_user(request, db)
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def is_safe_redirect_url(url: str) -> bool:
    """Validate that URL is safe for redirect (same-origin only).

    Only relative URLs that start with / and carry no scheme or netloc pass.
    """
    if not url:
        return False
    parsed = urlparse(url)
    return not parsed.scheme and not parsed.netloc and url.startswith('/') and not url.startswith('//')


def generate_csrf_token() -> str:
    """Generate a CSRF token."""
    return secrets.token_urlsafe(32)


def verify_csrf_token(request: Request, submitted_token: str) -> bool:
    """Verify CSRF token from cookie matches submitted token."""
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    if not cookie_token or not submitted_token:
        return False
    return secrets.compare_digest(cookie_token, submitted_token)


def _login_form(request: Request, next: str, error: Optional[str] = None, status_code: int = 200):
    """Render the login form with a fresh CSRF cookie (double-submit pattern)."""
    csrf_token = generate_csrf_token()
    response = templates.TemplateResponse(
        request,
        "admin/login.html",
        {"error": error, "next": next, "csrf_token": csrf_token},
        status_code=status_code
    )
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=csrf_token,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="strict",
        max_age=3600  # 1 hour
    )
    return response


@router.get("/login")
async def login_page(
    request: Request,
    next: str = DEFAULT_NEXT,
    db: Session = Depends(get_db)
):
    """Render login page."""
    if not is_safe_redirect_url(next):
        next = DEFAULT_NEXT

    if get_current_user(request, db):
        return RedirectResponse(url=next, status_code=302)

    return _login_form(request, next)


@router.post("/login")
@limiter.limit("5/minute")
async def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    next: str = Form(DEFAULT_NEXT),
    csrf_token: str = Form(...),
    db: Session = Depends(get_db)
):
    """Process login form."""
    if not verify_csrf_token(request, csrf_token):
        raise HTTPException(status_code=403, detail="Invalid CSRF token")

    if not is_safe_redirect_url(next):
        next = DEFAULT_NEXT

    user = users_service.authenticate_user(db, email, password)
    if not user:
        logger.warning(f"Failed login for {email!r}")
        return _login_form(request, next, error="Invalid email or password", status_code=401)

    response = RedirectResponse(url=next, status_code=302)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=create_session_token(user),
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax",
        max_age=SESSION_MAX_AGE
    )
    response.delete_cookie(key=CSRF_COOKIE_NAME)

    logger.info(f"User {user.email} logged in")
    return response


@router.get("/logout")
async def logout():
    """Log out and clear session."""
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=IS_PRODUCTION,
        samesite="lax"
    )
    return response
