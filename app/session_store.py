"""
Server-side sessions.

The browser only holds a signed, opaque session id. Session data lives in a
SessionStore: InMemorySessionStore for a single process (and tests), or
RedisSessionStore when several workers must share sessions.

Sessions expire a fixed time after they are issued. Activity does not
extend them.
"""

from __future__ import annotations

import json
import secrets
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Protocol

import redis
import structlog
from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from werkzeug.datastructures import CallbackDict

from exceptions import StorageException

logger = structlog.get_logger("session")


class SessionStore(Protocol):
    """Operations the session interface needs from a backend."""

    def get(self, session_id: str) -> Optional[dict[str, Any]]:
        ...

    def set(self, session_id: str, data: dict[str, Any], ttl: float) -> None:
        ...

    def destroy(self, session_id: str) -> None:
        ...

    def expire(self, session_id: str, ttl: float) -> bool:
        ...


class InMemorySessionStore:
    """Process-local store. Expired entries are dropped lazily."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._entries: dict[str, tuple[dict[str, Any], float]] = {}
        self._lock = threading.Lock()

    def get(self, session_id):
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return None
            data, expires_at = entry
            if self.clock() >= expires_at:
                del self._entries[session_id]
                return None
            return dict(data)

    def set(self, session_id, data, ttl):
        with self._lock:
            self._purge_expired()
            self._entries[session_id] = (dict(data), self.clock() + ttl)

    def destroy(self, session_id):
        with self._lock:
            self._entries.pop(session_id, None)

    def expire(self, session_id, ttl):
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                return False
            self._entries[session_id] = (entry[0], self.clock() + ttl)
            return True

    def __len__(self):
        with self._lock:
            self._purge_expired()
            return len(self._entries)

    def _purge_expired(self):
        now = self.clock()
        for session_id in [sid for sid, (_, exp) in self._entries.items() if now >= exp]:
            del self._entries[session_id]


class RedisSessionStore:
    """Sessions shared through Redis, expiry handled by Redis key TTLs."""

    def __init__(self, client, prefix: str = "cms:session:"):
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url, **kwargs):
        return cls(redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, session_id):
        return f"{self.prefix}{session_id}"

    def get(self, session_id):
        try:
            raw = self.client.get(self._key(session_id))
        except redis.RedisError as e:
            raise StorageException(f"Session lookup failed: {e}") from e
        return json.loads(raw) if raw else None

    def set(self, session_id, data, ttl):
        try:
            self.client.setex(self._key(session_id), max(int(ttl), 1), json.dumps(data))
        except redis.RedisError as e:
            raise StorageException(f"Session save failed: {e}") from e

    def destroy(self, session_id):
        try:
            self.client.delete(self._key(session_id))
        except redis.RedisError as e:
            raise StorageException(f"Session destroy failed: {e}", public_message="Logout failed") from e

    def expire(self, session_id, ttl):
        try:
            return bool(self.client.expire(self._key(session_id), max(int(ttl), 1)))
        except redis.RedisError as e:
            raise StorageException(f"Session expire failed: {e}") from e


class ServerSideSession(CallbackDict, SessionMixin):
    def __init__(self, initial=None, sid=None, new=False, expires_at=None):
        def on_update(self):
            self.modified = True

        CallbackDict.__init__(self, initial, on_update)
        self.sid = sid
        self.new = new
        self.modified = False
        self.expires_at = expires_at
        self.destroyed = False


class ServerSideSessionInterface(SessionInterface):
    """Flask session interface backed by a SessionStore."""

    def __init__(self, store: SessionStore, ttl: float, clock: Callable[[], float] = time.time):
        self.store = store
        self.ttl = ttl
        self.clock = clock

    @staticmethod
    def generate_sid():
        return secrets.token_urlsafe(32)

    def _signer(self, app):
        if not app.secret_key:
            return None
        return Signer(app.secret_key, salt="cms-session")

    def _new_session(self):
        return ServerSideSession(sid=self.generate_sid(), new=True)

    def open_session(self, app, request):
        signer = self._signer(app)
        if signer is None:
            return None

        cookie = request.cookies.get(self.get_cookie_name(app))
        if not cookie:
            return self._new_session()

        try:
            sid = signer.unsign(cookie).decode("utf-8")
        except BadSignature:
            logger.warning("Rejected session cookie with bad signature")
            return self._new_session()

        record = self.store.get(sid)
        if not record or record.get("expires_at", 0) <= self.clock():
            return self._new_session()

        return ServerSideSession(record.get("data"), sid=sid, expires_at=record["expires_at"])

    def regenerate(self, session):
        """Move the session to a fresh id with a fresh lifetime (used at login)."""
        if not session.new:
            self.store.destroy(session.sid)
        session.sid = self.generate_sid()
        session.new = True
        session.expires_at = None
        session.modified = True

    def destroy(self, session):
        """Drop the session from the store and clear it (used at logout)."""
        session.destroyed = True
        session.clear()
        if not session.new:
            self.store.destroy(session.sid)

    def save_session(self, app, session, response):
        name = self.get_cookie_name(app)
        domain = self.get_cookie_domain(app)
        path = self.get_cookie_path(app)

        if not session:
            if session.modified and not session.new:
                if not session.destroyed:
                    self.store.destroy(session.sid)
                response.delete_cookie(name, domain=domain, path=path)
            return

        if not session.modified:
            return

        now = self.clock()
        if session.expires_at is None:
            session.expires_at = now + self.ttl

        remaining = session.expires_at - now
        if remaining <= 0:
            self.store.destroy(session.sid)
            response.delete_cookie(name, domain=domain, path=path)
            return

        self.store.set(session.sid, {"data": dict(session), "expires_at": session.expires_at}, remaining)

        response.set_cookie(
            name,
            self._signer(app).sign(session.sid).decode("utf-8"),
            expires=datetime.fromtimestamp(session.expires_at, tz=timezone.utc),
            httponly=self.get_cookie_httponly(app),
            domain=domain,
            path=path,
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )
