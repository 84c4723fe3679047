"""
Shared authentication helpers.
Provides token creation, verification, blacklisting and the request auth chain:

    bearer extraction -> blacklist lookup -> signature/expiry check -> user lookup
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from dotenv import load_dotenv
from flask import Response, g, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth_service.models import BlacklistedToken, User
from backend.database.db_connection import get_db
from backend.database.time_utils import to_naive_utc

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

JWT_ALGORITHM = "HS256"
TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 60))  # Default 1 hour

BEARER_PREFIX = "Bearer "


class MalformedTokenError(Exception):
    """The Authorization header says Bearer but carries no token."""


# --- JWT CREATION ---
def create_token(user_id: int) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (int): The unique ID of the user.

    Returns:
        str: Encoded JWT string (without the "Bearer " prefix).
    """
    now = datetime.now(timezone.utc)

    payload = {
        "id": user_id,
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
    }

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Verify signature and expiry of a JWT and return its claims.

    Raises:
        jwt.ExpiredSignatureError: The token is past its exp claim.
        jwt.InvalidTokenError: Any other verification failure.
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def token_expires_at(claims: dict) -> datetime:
    """Naive UTC datetime of the exp claim."""
    return to_naive_utc(datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc))


def extract_bearer_token() -> Optional[str]:
    """
    Read the token from the Authorization header of the current request.

    Returns:
        str: The raw token, or None when there is no bearer header at all.

    Raises:
        MalformedTokenError: The header is "Bearer" with nothing after it.
    """
    auth = request.headers.get("Authorization", "")
    if not auth.startswith(BEARER_PREFIX):
        return None

    token = auth[len(BEARER_PREFIX):].strip()
    if not token:
        raise MalformedTokenError()
    return token


# --- BLACKLIST ---
def is_token_blacklisted(db: Session, token: str) -> bool:
    return db.query(BlacklistedToken.id).filter(BlacklistedToken.token == token).first() is not None


def blacklist_token(db: Session, token: str, expires_at: datetime) -> bool:
    """
    Record a token as revoked.

    Returns:
        bool: True if the token was added, False if it was already revoked.
    """
    db.add(BlacklistedToken(token=token, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return False
    return True


# --- JWT VALIDATION ---
def _error(message: str, code: int) -> Tuple[None, Response, int]:
    return None, jsonify({"message": message}), code


def verify_token_from_request() -> Tuple[Optional[User], Optional[Response], Optional[int]]:
    """
    Run the full auth chain on the current request.

    Returns:
        tuple: (user, error_response, status_code)
               If successful, error_response and status_code are None and the
               user is also stored on flask.g.user.
               If failed, user is None.
    """
    try:
        token = extract_bearer_token()
    except MalformedTokenError:
        logging.warning("[Auth] Bearer header without a token")
        return _error("Malformed token", 401)

    if token is None:
        return _error("Not authenticated", 401)

    try:
        with get_db() as db:
            if is_token_blacklisted(db, token):
                return _error("Token has been revoked", 401)

            try:
                claims = decode_token(token)
            except jwt.ExpiredSignatureError:
                return _error("Token expired", 401)
            except jwt.InvalidTokenError:
                return _error("Invalid token", 401)

            user_id = claims.get("id")
            user = db.get(User, user_id) if isinstance(user_id, int) else None
            if user is None:
                return _error("User not found", 401)

            # Keep the row usable after the session closes
            db.expunge(user)
    except SQLAlchemyError as e:
        logging.error(f"[Auth] Database error while verifying token: {e}")
        return _error("Server error while checking token", 500)

    g.user = user
    g.token = token
    g.token_claims = claims
    return user, None, None


def get_optional_user() -> Optional[User]:
    """
    Auth chain for public endpoints: the caller is anonymous unless a valid,
    non-revoked token for an existing user is presented.
    """
    try:
        token = extract_bearer_token()
    except MalformedTokenError:
        return None
    if token is None:
        return None

    user, err, _ = verify_token_from_request()
    if err is not None:
        logging.info("[Auth] Ignoring unusable token on public endpoint")
        return None
    return user
