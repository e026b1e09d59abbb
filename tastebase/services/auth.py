"""
Sign-up, sign-in and session lookup.

Usernames are derived from the requested name or the email local part,
reduced to [a-z0-9_-] and at most 32 characters, with -1, -2, ... appended
until unused.
"""

import logging
import re
import secrets
import string
import time
from datetime import datetime, timedelta, timezone

from fastapi import Depends

from tastebase.config import get_settings
from tastebase.errors import (
    AlreadyExists, InvalidCredentials, InvalidPassword, InvalidUsername, UsernameTaken,
)
from tastebase.schemas.auth import AuthSession, AuthUser
from tastebase.sessions import SessionStore, get_session_store
from tastebase.stores import UserStore, get_user_store
from tastebase.utils.passwords import hash_password, password_too_long, verify_password

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 32
_INVALID_USERNAME_CHARS = re.compile(r"[^a-z0-9_-]+")
_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def sanitize_username(value: str) -> str:
    value = _INVALID_USERNAME_CHARS.sub("-", value.strip().lower())
    return value.strip("-")[:USERNAME_MAX_LENGTH]


def _random_suffix(length: int) -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def create_session_token() -> str:
    return f"session_{int(time.time() * 1000)}_{_random_suffix(13)}"


def unique_username(base: str, taken) -> str:
    """First of base, base-1, base-2, ... for which taken(candidate) is false."""
    candidate = base
    suffix = 1
    while taken(candidate):
        tail = f"-{suffix}"
        candidate = f"{base[:max(0, USERNAME_MAX_LENGTH - len(tail))]}{tail}"
        suffix += 1
    return candidate


class AuthService:

    def __init__(self, users: UserStore, sessions: SessionStore, session_ttl: timedelta | None = None):
        self.users = users
        self.sessions = sessions
        self.session_ttl = session_ttl or timedelta(days=get_settings().SESSION_TTL_DAYS)

    def _open_session(self, user: AuthUser) -> str:
        token = create_session_token()
        self.sessions.put(token, AuthSession(
            user=user,
            expires_at=datetime.now(timezone.utc) + self.session_ttl,
        ))
        return token

    def sign_up(
        self, email: str, password: str,
        full_name: str | None = None, username: str | None = None,
    ) -> tuple[AuthUser, str]:
        email = email.strip().lower()
        if self.users.get_by_email(email) is not None:
            raise AlreadyExists("User with this email already exists. Try logging in instead.")
        if password_too_long(password):
            raise InvalidPassword("Password must be at most 72 bytes long.")

        requested = (username or "").strip()
        base = sanitize_username(requested or email.split("@")[0])
        if not base:
            base = f"cook-{_random_suffix(6)}"
        final_username = unique_username(base, self.users.username_taken)

        user = self.users.create(
            email=email,
            password_hash=hash_password(password),
            full_name=(full_name or "").strip() or None,
            username=final_username,
        )
        logger.info(f"New user {user.id} signed up as {user.username}")
        return user, self._open_session(user)

    def sign_in(self, email: str, password: str) -> tuple[AuthUser, str]:
        found = self.users.get_by_email(email.strip().lower())
        if found is None:
            raise InvalidCredentials("Invalid email or password")
        user, password_hash = found
        if not verify_password(password, password_hash):
            raise InvalidCredentials("Invalid email or password")
        return user, self._open_session(user)

    def get_user_from_session(self, token: str | None) -> AuthUser | None:
        if not token:
            return None
        session = self.sessions.get(token)
        if session is None:
            return None
        if session.expires_at < datetime.now(timezone.utc):
            self.sessions.delete(token)
            logger.debug("Evicted expired session")
            return None
        return session.user

    def sign_out(self, token: str | None) -> None:
        if token:
            self.sessions.delete(token)

    def update_profile(
        self, user_id: str, token: str | None = None, *,
        full_name: str | None = None, username: str | None = None,
        bio: str | None = None, avatar_url: str | None = None,
    ) -> AuthUser | None:
        updates = {
            "full_name": (full_name or "").strip() or None,
            "bio": (bio or "").strip() or None,
            "avatar_url": avatar_url or None,
        }
        if username:
            clean = sanitize_username(username)
            if not clean:
                raise InvalidUsername("Username must contain letters or numbers")
            if self.users.username_taken(clean, exclude_user_id=user_id):
                raise UsernameTaken("Username is already taken")
            updates["username"] = clean

        user = self.users.update_profile(user_id, updates)
        if user is not None and token:
            session = self.sessions.get(token)
            if session is not None:
                self.sessions.put(token, AuthSession(user=user, expires_at=session.expires_at))
        return user


def get_auth_service(
    users: UserStore = Depends(get_user_store),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthService:
    return AuthService(users, sessions)
