"""Shopper sessions and the auth cookie"""

import json
import time
import asyncio
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Optional
from dataclasses import dataclass, field

import jwt
from fastapi import Header, Request, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import settings
from ..models.cart import Cart
from ..services.checkout import CheckoutWizard

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ShopperSession:
    """Everything one browser session owns"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    cart: Cart = field(default_factory=Cart)
    checkout: CheckoutWizard = field(default_factory=CheckoutWizard)

    def touch(self) -> None:
        self.updated_at = _now()

    def reset_checkout(self) -> None:
        """Start a fresh checkout (after confirmation or cart changes)"""
        self.checkout = CheckoutWizard()
        self.touch()


class SessionManager:
    """Manages shopper sessions"""

    def __init__(self):
        self.sessions: dict[str, ShopperSession] = {}

    def create_session(self) -> ShopperSession:
        """Create a new session"""
        now = _now()
        session = ShopperSession(
            session_id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
        )
        self.sessions[session.session_id] = session
        return session

    def empty_session(self) -> ShopperSession:
        """Unstored placeholder for reads by shoppers without a session"""
        now = _now()
        return ShopperSession(session_id="", created_at=now, updated_at=now)

    def get_session(self, session_id: str) -> Optional[ShopperSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> ShopperSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            session = self.sessions[session_id]
            session.touch()
            return session
        return self.create_session()

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions idle for more than max_age_hours"""
        now = _now()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            del self.sessions[sid]
        if old_sessions:
            logger.info(f"Removed {len(old_sessions)} idle sessions")
        return len(old_sessions)


# Singleton instance
session_manager = SessionManager()


async def session_cleanup_job(interval_seconds: int = 3600) -> None:
    """Periodically drop idle sessions until cancelled"""
    while True:
        await asyncio.sleep(interval_seconds)
        session_manager.cleanup_old_sessions(settings.session_max_age_hours)


def get_shopper_session(
    response: Response,
    x_session_id: Optional[str] = Header(None),
) -> ShopperSession:
    """Resolve the session from the X-Session-Id header, creating one if needed"""
    session = session_manager.get_or_create_session(x_session_id)
    response.headers[SESSION_HEADER] = session.session_id
    return session


def peek_shopper_session(
    response: Response,
    x_session_id: Optional[str] = Header(None),
) -> ShopperSession:
    """
    Resolve the session for a read-only route.

    Unknown or missing ids get an empty, unstored session and no
    X-Session-Id header; a session is stored on its first change.
    """
    session = session_manager.get_session(x_session_id) if x_session_id else None
    if session is None:
        return session_manager.empty_session()
    session.touch()
    response.headers[SESSION_HEADER] = session.session_id
    return session


# ==================== Auth cookie ====================


class AuthCookie(BaseModel):
    """JSON blob stored in the HTTP-only auth cookie"""
    model_config = ConfigDict(populate_by_name=True)

    token: Optional[str] = None
    id: Any = None
    email: str = ""
    name: str = ""
    login_time: int = Field(default_factory=lambda: int(time.time() * 1000), alias="loginTime")

    def encode(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))

    @classmethod
    def decode(cls, raw: Optional[str]) -> Optional["AuthCookie"]:
        if not raw:
            return None
        try:
            return cls.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            logger.debug("Ignoring malformed auth cookie")
            return None

    def token_expired(self, now: Optional[float] = None) -> bool:
        """
        True when the JWT carries an exp claim in the past.

        The signature is not verified. Opaque tokens never expire locally.
        """
        if not self.token:
            return False
        try:
            claims = jwt.decode(self.token, options={"verify_signature": False})
        except jwt.PyJWTError:
            return False
        exp = claims.get("exp")
        if exp is None:
            return False
        try:
            expires_at = float(exp)
        except (TypeError, ValueError):
            logger.debug("Auth cookie token has a malformed exp claim")
            return True
        return expires_at < (now if now is not None else time.time())


def set_auth_cookie(response: Response, cookie: AuthCookie) -> None:
    response.set_cookie(
        settings.auth_cookie_name,
        cookie.encode(),
        max_age=settings.auth_cookie_max_age,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(settings.auth_cookie_name, path="/")


def read_auth_cookie(request: Request) -> Optional[AuthCookie]:
    """Logged-in shopper from the request cookie, or None"""
    cookie = AuthCookie.decode(request.cookies.get(settings.auth_cookie_name))
    if cookie is None or cookie.token_expired():
        return None
    return cookie
