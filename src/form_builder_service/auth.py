"""
Password hashing (bcrypt) and bearer tokens (HS256 JWT).
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, Optional

import bcrypt
import jwt

from form_builder_service.config import get_settings
from form_builder_service.errors import BadRequest, Conflict, Unauthorized
from form_builder_service.store import FormStore, Record

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 8
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(str(email or "")))


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def issue_token(user: Record, *, ttl_sec: Optional[int] = None) -> str:
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": str(user["id"]),
        "email": user.get("email"),
        "iat": now,
        "exp": now + int(ttl_sec if ttl_sec is not None else settings.token_ttl_sec),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")


def public_user(user: Record) -> Dict[str, Any]:
    return {"id": user["id"], "email": user.get("email"), "name": user.get("name"), "createdAt": user.get("createdAt")}


def sign_up(store: FormStore, *, email: str, password: str, name: Optional[str]) -> Dict[str, Any]:
    email_n = normalize_email(email)
    if not is_valid_email(email_n):
        raise BadRequest("Invalid email address")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise BadRequest(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if store.get_user_by_email(email_n):
        raise Conflict("An account with this email already exists")

    user = store.create_user(email=email_n, name=(name or "").strip() or None, password_hash=hash_password(password))
    bound = store.bind_pending_invites(email=email_n, user_id=user["id"])
    if bound:
        logger.info("bound %d pending collaborator invite(s) to user %s", bound, user["id"])
    return {"user": public_user(user), "token": issue_token(user)}


def sign_in(store: FormStore, *, email: str, password: str) -> Dict[str, Any]:
    user = store.get_user_by_email(normalize_email(email))
    if not user or not verify_password(password, str(user.get("passwordHash") or "")):
        raise Unauthorized("Invalid email or password")
    return {"user": public_user(user), "token": issue_token(user)}


def user_from_token(store: FormStore, token: str) -> Record:
    claims = decode_token(token)
    user = store.get_user(str(claims.get("sub") or ""))
    if not user:
        raise Unauthorized("Unknown user")
    return user
