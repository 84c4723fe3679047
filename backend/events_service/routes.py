"""
Events service routes: create, read, update, delete events, and registration.
Handles event lifecycle management and participation.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Blueprint, Response, jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.auth_service.models import User
from backend.auth_service.utils import get_optional_user, verify_token_from_request
from backend.database.db_connection import get_db
from backend.events_service.models import TITLE_MAX_LENGTH, Event, EventCategory, EventParticipant
from backend.events_service.utils import add_participation_info, check_event_limit, parse_dt, parse_leading_int

events_bp = Blueprint("events", __name__)

VALID_CATEGORIES = EventCategory.values()
UPDATABLE_FIELDS = ("title", "description", "date", "category")


def _invalid_category(category: Any) -> Tuple[Response, int]:
    return jsonify({"message": f"Invalid category: {category}"}), 400


def _invalid_event_id() -> Tuple[Response, int]:
    return jsonify({"message": "Invalid event ID"}), 400


def _validate_event_fields(data: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[Tuple[Response, int]]]:
    """
    Validate and convert the event fields present in a request body.

    Returns:
        tuple: (values, error). values maps column names to converted values
               for every field present in data; error is a ready response.
    """
    values: Dict[str, Any] = {}

    if "title" in data:
        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            return None, (jsonify({"message": "Title cannot be empty"}), 400)
        if len(title) > TITLE_MAX_LENGTH:
            return None, (jsonify({"message": f"Title must be {TITLE_MAX_LENGTH} characters or less."}), 400)
        values["title"] = title

    if "description" in data:
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            return None, (jsonify({"message": "Description must be a string"}), 400)
        values["description"] = description

    if "date" in data:
        date = parse_dt(data.get("date"))
        if not date:
            return None, (jsonify({"message": "Invalid date format. Use ISO-8601."}), 400)
        values["date"] = date

    if "category" in data:
        category = data.get("category")
        if category not in VALID_CATEGORIES:
            return None, _invalid_category(category)
        values["category"] = EventCategory(category)

    return values, None


@events_bp.route("/", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all events ordered by date.

    Query params:
    - category: concert | lecture | exhibition (optional filter)

    If the caller is logged in, each event says whether they are registered.

    Returns:
        200: List of event objects with participantsCount.
        400: Invalid category.
        500: Database error.
    """
    user = get_optional_user()

    category = request.args.get("category")
    if category and category not in VALID_CATEGORIES:
        return _invalid_category(category)

    try:
        with get_db() as db:
            query = db.query(Event)
            if category:
                query = query.filter(Event.category == EventCategory(category))
            events = query.order_by(Event.date.asc(), Event.id.asc()).all()
            rows = add_participation_info(db, events, user.id if user else None)
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error listing events: {e}")
        return jsonify({"message": "Failed to retrieve events"}), 500

    return jsonify(rows), 200


@events_bp.route("/my", methods=["GET"])
def list_my_events() -> Tuple[Response, int]:
    """
    Return the events created by the authenticated user, ordered by date.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        with get_db() as db:
            events = (
                db.query(Event)
                .filter(Event.created_by == user.id)
                .order_by(Event.date.asc(), Event.id.asc())
                .all()
            )
            rows = add_participation_info(db, events, user.id)
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error listing events of user {user.id}: {e}")
        return jsonify({"message": "Failed to retrieve your events"}), 500

    return jsonify(rows), 200


@events_bp.route("/<event_id>", methods=["GET"])
def get_event(event_id: str) -> Tuple[Response, int]:
    """
    Get a single event by ID.

    Returns:
        200: Event object.
        400: The ID is not a number.
        404: Event not found.
    """
    user = get_optional_user()

    event_id = parse_leading_int(event_id)
    if event_id is None:
        return _invalid_event_id()

    try:
        with get_db() as db:
            event = db.get(Event, event_id)
            if not event:
                return jsonify({"message": "Event not found"}), 404
            body = add_participation_info(db, [event], user.id if user else None)[0]
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error getting event {event_id}: {e}")
        return jsonify({"message": "Failed to retrieve event"}), 500

    return jsonify(body), 200


@events_bp.route("/<event_id>/participants", methods=["GET"])
def get_participants(event_id: str) -> Tuple[Response, int]:
    """
    Get the list of users registered for an event, ordered by name.
    Any authenticated user may view it.
    """
    _, err, code = verify_token_from_request()
    if err:
        return err, code

    event_id = parse_leading_int(event_id)
    if event_id is None:
        return _invalid_event_id()

    try:
        with get_db() as db:
            if db.get(Event, event_id) is None:
                return jsonify({"message": "Event not found"}), 404

            participants = (
                db.query(User.id, User.name, User.email)
                .join(EventParticipant, EventParticipant.user_id == User.id)
                .filter(EventParticipant.event_id == event_id)
                .order_by(User.name.asc(), User.id.asc())
                .all()
            )
            body = [{"id": p.id, "name": p.name, "email": p.email} for p in participants]
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error getting participants of event {event_id}: {e}")
        return jsonify({"message": "Failed to retrieve participant list"}), 500

    return jsonify(body), 200


@events_bp.route("/<event_id>/register", methods=["POST"])
def register_for_event(event_id: str) -> Tuple[Response, int]:
    """
    Register the authenticated user for an event.

    Returns:
        201: The event with updated participation info.
        403: The caller created this event.
        404: Event not found.
        409: Already registered.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    event_id = parse_leading_int(event_id)
    if event_id is None:
        return _invalid_event_id()

    try:
        with get_db() as db:
            event = db.get(Event, event_id)
            if not event:
                return jsonify({"message": "Event not found"}), 404

            if event.created_by == user.id:
                return jsonify({"message": "You cannot register for your own event"}), 403

            if db.get(EventParticipant, (user.id, event_id)) is not None:
                return jsonify({"message": "You are already registered for this event"}), 409

            db.add(EventParticipant(user_id=user.id, event_id=event_id))
            try:
                db.commit()
            except IntegrityError:
                # A concurrent request registered the same user first
                db.rollback()
                return jsonify({"message": "You are already registered for this event"}), 409

            body = add_participation_info(db, [event], user.id)[0]
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error registering user {user.id} for event {event_id}: {e}")
        return jsonify({"message": "Failed to register for event"}), 500

    return jsonify(body), 201


@events_bp.route("/<event_id>/register", methods=["DELETE"])
def unregister_from_event(event_id: str) -> Tuple[Response, int]:
    """
    Cancel the authenticated user's registration for an event.

    Returns:
        200: The event with updated participation info.
        404: Event not found, or the user was not registered.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    event_id = parse_leading_int(event_id)
    if event_id is None:
        return _invalid_event_id()

    try:
        with get_db() as db:
            event = db.get(Event, event_id)
            if not event:
                return jsonify({"message": "Event not found"}), 404

            participation = db.get(EventParticipant, (user.id, event_id))
            if participation is None:
                return jsonify({"message": "You were not registered for this event"}), 404

            db.delete(participation)
            db.commit()

            body = add_participation_info(db, [event], user.id)[0]
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error unregistering user {user.id} from event {event_id}: {e}")
        return jsonify({"message": "Failed to cancel registration"}), 500

    return jsonify(body), 200


@events_bp.route("/", methods=["POST"])
def create_event() -> Tuple[Response, int]:
    """
    Create an event owned by the authenticated user.

    Validations:
    - Daily creation limit (MAX_EVENTS_PER_DAY).
    - title, date and category are required.
    - date must be ISO-8601, category one of concert/lecture/exhibition.

    Returns:
        201: The created event.
        400: Validation error.
        429: Daily limit reached.
        500: Server error.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        with get_db() as db:
            limit_err, limit_code = check_event_limit(db, user.id)
            if limit_err:
                return limit_err, limit_code

            # --- START VALIDATION ---
            if not data.get("title") or not data.get("date") or not data.get("category"):
                return jsonify({"message": "title, date and category are required"}), 400

            values, invalid = _validate_event_fields(data)
            if invalid:
                return invalid
            # --- END VALIDATION ---

            event = Event(
                title=values["title"],
                description=values.get("description"),
                date=values["date"],
                category=values["category"],
                created_by=user.id,
            )
            db.add(event)
            db.commit()
            db.refresh(event)
            body = event.to_dict()
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error creating event: {e}")
        return jsonify({"message": "Failed to create event"}), 500

    logging.info(f"[Events] User {user.id} created event {body['id']}")
    return jsonify(body), 201


@events_bp.route("/<event_id>", methods=["PUT"])
def update_event(event_id: str) -> Tuple[Response, int]:
    """
    Update an event. Only its creator may do so.

    Accepts any subset of: title, description, date, category.

    Returns:
        200: The updated event.
        400: Validation error or nothing to update.
        403: Not the creator.
        404: Event not found.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    event_id = parse_leading_int(event_id)
    if event_id is None:
        return _invalid_event_id()

    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        with get_db() as db:
            event = db.get(Event, event_id)
            if not event:
                return jsonify({"message": "Event not found"}), 404

            # --- PERMISSION CHECK ---
            if event.created_by != user.id:
                return jsonify({"message": "Access denied: you are not the creator of this event"}), 403

            updates = {k: data[k] for k in UPDATABLE_FIELDS if k in data}
            if not updates:
                return jsonify({"message": "No data to update"}), 400

            values, invalid = _validate_event_fields(updates)
            if invalid:
                return invalid

            for key, value in values.items():
                setattr(event, key, value)
            db.commit()
            db.refresh(event)
            body = event.to_dict()
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error updating event {event_id}: {e}")
        return jsonify({"message": "Failed to update event"}), 500

    return jsonify(body), 200


@events_bp.route("/<event_id>", methods=["DELETE"])
def delete_event(event_id: str):
    """
    Delete an event if the caller created it. Registrations are removed with it.

    Returns:
        204: Deleted (empty body).
        403: Not the creator.
        404: Event not found.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    event_id = parse_leading_int(event_id)
    if event_id is None:
        return _invalid_event_id()

    try:
        with get_db() as db:
            event = db.get(Event, event_id)
            if not event:
                return jsonify({"message": "Event not found"}), 404

            if event.created_by != user.id:
                return jsonify({"message": "Access denied: you are not the creator of this event"}), 403

            db.delete(event)
            db.commit()
    except SQLAlchemyError as e:
        logging.error(f"[Events] Database error deleting event {event_id}: {e}")
        return jsonify({"message": "Failed to delete event"}), 500

    logging.info(f"[Events] User {user.id} deleted event {event_id}")
    return "", 204
