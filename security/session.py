import hashlib
import logging
import secrets
from datetime import timedelta
from flask import request, current_app

from models import db
from models.session import Session
from services.errors import Unauthenticated
from utils.clock import utcnow

log = logging.getLogger(__name__)


def _hash_token(token: str) -> str:
    # SHA-256 is fine for hashing random session tokens
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def bearer_token_from_request():
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def create_session(user_id: int) -> str:
    """
    Creates a server-side session and returns the RAW token (sent back once,
    presented as a bearer token). Only the hash is stored in DB.
    """
    raw_token = secrets.token_urlsafe(32)
    token_hash = _hash_token(raw_token)

    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 24 * 60 * 60)
    expires_at = utcnow() + timedelta(seconds=lifetime)

    ip = request.headers.get("X-Forwarded-For", request.remote_addr)
    user_agent = (request.headers.get("User-Agent") or "")[:255]

    row = Session(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
        ip=ip,
        user_agent=user_agent,
    )
    db.session.add(row)
    db.session.commit()
    return raw_token


def authenticate(raw_token) -> int:
    """Resolve a bearer token to the user id it was issued for."""
    if not raw_token:
        raise Unauthenticated("Authorization header missing")

    sess = (
        Session.query
        .filter_by(token_hash=_hash_token(raw_token), revoked=False)
        .first()
    )
    if not sess:
        raise Unauthenticated("Invalid token")

    now = utcnow()

    # Absolute expiry
    if sess.expires_at <= now:
        raise Unauthenticated("Session expired")

    # Idle timeout (0 disables)
    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 0)
    last_seen = sess.last_seen_at or sess.created_at
    if idle_seconds and (last_seen + timedelta(seconds=idle_seconds)) <= now:
        log.info("session %s idle for too long", sess.id)
        raise Unauthenticated("Session expired")

    # Update activity timestamp (touch)
    sess.last_seen_at = now
    db.session.commit()

    return sess.user_id


def revoke_session(raw_token: str) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not sess:
        return False
    sess.revoked = True
    db.session.commit()
    return True
