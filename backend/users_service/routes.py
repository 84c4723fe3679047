"""
Users service route handlers.
Public directory of registered users.
"""

import logging

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from backend.auth_service.models import User
from backend.database.db_connection import get_db

users_bp = Blueprint("users", __name__)


@users_bp.route("/", methods=["GET"])
def list_users():
    """
    Get all users (id, name, email, createdAt). Public access allowed.
    """
    try:
        with get_db() as db:
            users = [u.to_dict() for u in db.query(User).order_by(User.id.asc()).all()]
    except SQLAlchemyError as e:
        logging.error(f"[Users] Error listing users: {e}")
        return jsonify({"message": "Failed to retrieve users"}), 500

    return jsonify(users), 200
