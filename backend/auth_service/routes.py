"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Logout (token blacklisting)
- Profile retrieval (/profile)
- Account deletion (/profile DELETE)

All JWT logic is delegated to `auth_service.utils`.
"""

import logging
import re
from typing import Any, Dict, Tuple

from argon2 import PasswordHasher
from argon2.exceptions import VerificationError, InvalidHashError
from flask import Blueprint, Response, g, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.auth_service.models import BlacklistedToken, User
from backend.auth_service.utils import (
    BEARER_PREFIX,
    blacklist_token,
    create_token,
    token_expires_at,
    verify_token_from_request,
)
from backend.database.db_connection import get_db

auth_bp = Blueprint("auth", __name__)
ph = PasswordHasher()

PASSWORD_MIN_LENGTH = 6
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - name (str)
    - email (str): Unique email address.
    - password (str): Minimum 6 characters.

    Returns:
        201: JSON with a confirmation message and the new user.
        400: Missing fields, invalid input, or email already exists.
        500: Server-side error (hashing or database).
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    name: str = (data.get("name") or "").strip()
    email: str = (data.get("email") or "").strip().lower()
    password: str = data.get("password") or ""

    # Validate input
    if not name or not email or not password:
        return jsonify({"message": "Name, email and password are required"}), 400
    if not EMAIL_PATTERN.match(email):
        return jsonify({"message": "Validation error: invalid email address"}), 400
    if len(password) < PASSWORD_MIN_LENGTH:
        return jsonify({"message": f"Password must be at least {PASSWORD_MIN_LENGTH} characters"}), 400

    # Hash password using Argon2
    try:
        pw_hash = ph.hash(password)
    except Exception as e:
        logging.error(f"[Auth] Password hashing failed: {e}")
        return jsonify({"message": "Password hashing failed"}), 500

    try:
        with get_db() as db:
            if db.query(User.id).filter(User.email == email).first():
                return jsonify({"message": "Email already in use"}), 400

            user = User(name=name, email=email, password_hash=pw_hash)
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # Lost a race against a concurrent registration
                db.rollback()
                return jsonify({"message": "Email already in use"}), 400

            db.refresh(user)
            body = user.to_dict()
    except SQLAlchemyError as e:
        logging.error(f"[Auth] Database error during registration: {e}")
        return jsonify({"message": "Registration failed"}), 500

    logging.info(f"[Auth] Registered user {body['id']}")
    return jsonify({"message": "Registration successful", "user": body}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with "Bearer <jwt>" token and basic user info.
        400: Missing credentials.
        401: Invalid credentials (wrong password or email).
        500: Database error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    email: str = (data.get("email") or "").strip().lower()
    password: str = data.get("password") or ""

    if not email or not password:
        return jsonify({"message": "Email and password are required"}), 400

    try:
        with get_db() as db:
            user = db.query(User).filter(User.email == email).first()
            if user is not None:
                db.expunge(user)
    except SQLAlchemyError as e:
        logging.error(f"[Auth] Database error during login: {e}")
        return jsonify({"message": "Login failed"}), 500

    if not user:
        return jsonify({"message": "Invalid email or password"}), 401

    # Verify password against hash
    try:
        ph.verify(user.password_hash, password)
    except (VerificationError, InvalidHashError):
        return jsonify({"message": "Invalid email or password"}), 401

    token = create_token(user.id)

    return jsonify({
        "token": f"{BEARER_PREFIX}{token}",
        "user": {"id": user.id, "name": user.name, "email": user.email},
    }), 200


# --- LOGOUT ---
@auth_bp.route("/logout", methods=["POST"])
def logout() -> Tuple[Response, int]:
    """
    Revoke the presented token by adding it to the blacklist.

    Requires Authorization header: Bearer <token>

    Returns:
        200: Logged out (or the token had already been revoked).
        401: Authentication failure.
        500: Database error.
    """
    _, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        with get_db() as db:
            added = blacklist_token(db, g.token, token_expires_at(g.token_claims))
    except SQLAlchemyError as e:
        logging.error(f"[Auth] Database error during logout: {e}")
        return jsonify({"message": "Logout failed"}), 500

    if not added:
        return jsonify({"message": "Token already revoked"}), 200
    return jsonify({"message": "Logged out successfully"}), 200


# --- GET CURRENT USER ---
@auth_bp.route("/profile", methods=["GET"])
def get_profile() -> Tuple[Response, int]:
    """
    Retrieve the current user's profile.

    Requires Authorization header: Bearer <token>

    Returns:
        200: User profile object (no password hash).
        401: Authentication failure.
        404: User not found in DB (edge case).
        500: Database error.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        with get_db() as db:
            profile = db.get(User, user.id)
            if not profile:
                return jsonify({"message": "User not found"}), 404
            body = profile.to_dict()
    except SQLAlchemyError as e:
        logging.error(f"[Auth] Database error loading profile: {e}")
        return jsonify({"message": "Could not retrieve profile", "details": str(e)}), 500

    return jsonify(body), 200


# --- DELETE ACCOUNT ---
@auth_bp.route("/profile", methods=["DELETE"])
def delete_account() -> Tuple[Response, int]:
    """
    Delete the authenticated user's account permanently.

    The user's events and registrations are removed with it and the token
    used for this request is revoked, in a single commit.

    Returns:
        200: Account deleted.
        401: Authentication failure.
        500: Database error.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        with get_db() as db:
            account = db.get(User, user.id)
            if account is not None:
                db.delete(account)
            db.add(BlacklistedToken(token=g.token, expires_at=token_expires_at(g.token_claims)))
            db.commit()
    except SQLAlchemyError as e:
        logging.error(f"[Auth] Database error deleting user {user.id}: {e}")
        return jsonify({"message": "Deletion failed"}), 500

    logging.info(f"[Auth] Deleted user {user.id}")
    return jsonify({"message": "Account deleted"}), 200
