"""
Helpers for the events service: datetime parsing, participation info and the
per-user daily creation limit.
"""

import logging
import os
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from flask import Response, jsonify
from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.database.time_utils import to_naive_utc, utcnow
from backend.events_service.models import Event, EventParticipant

DEFAULT_MAX_EVENTS_PER_DAY = 5

LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def parse_dt(val: Optional[str]) -> Optional[datetime]:
    """
    Safely parse an ISO-8601 string to a naive UTC datetime.

    Args:
        val (str): The date string to parse.

    Returns:
        datetime: The parsed datetime, or None if invalid.
    """
    if not val or not isinstance(val, str):
        return None
    try:
        # Handles 'YYYY-MM-DDTHH:MM' and '...Z' or '...+00:00'
        if val.endswith('Z'):
            val = val[:-1] + '+00:00'
        return to_naive_utc(datetime.fromisoformat(val))
    except (ValueError, TypeError):
        return None


def add_participation_info(
    db: Session,
    events: Iterable[Event],
    current_user_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """
    Serialize events and attach participantsCount and isCurrentUserParticipant.

    Uses one grouped COUNT query for all events and, for an authenticated
    caller, one query for their registrations.
    """
    events = list(events)
    event_ids = [e.id for e in events]
    if not event_ids:
        return []

    counts = dict(
        db.query(EventParticipant.event_id, func.count(EventParticipant.user_id))
        .filter(EventParticipant.event_id.in_(event_ids))
        .group_by(EventParticipant.event_id)
        .all()
    )

    joined = set()
    if current_user_id:
        joined = {
            row.event_id
            for row in db.query(EventParticipant.event_id)
            .filter(
                EventParticipant.user_id == current_user_id,
                EventParticipant.event_id.in_(event_ids),
            )
            .all()
        }

    result = []
    for event in events:
        item = event.to_dict()
        item["participantsCount"] = counts.get(event.id, 0)
        item["isCurrentUserParticipant"] = event.id in joined
        result.append(item)
    return result


def parse_leading_int(val: Any) -> Optional[int]:
    """
    Parse the integer a string starts with ("12", " 12abc", "5.0" -> 5).

    Returns:
        int: The parsed value, or None when the string does not start with digits.
    """
    if not isinstance(val, str):
        return None
    match = LEADING_INT_PATTERN.match(val)
    return int(match.group(1)) if match else None


def max_events_per_day() -> int:
    """
    Read MAX_EVENTS_PER_DAY on every call so it can change without a restart.
    Only the leading integer counts, so "5 # per day" means 5.

    Raises:
        ValueError: The variable is set but does not start with an integer.
    """
    raw = os.getenv("MAX_EVENTS_PER_DAY", str(DEFAULT_MAX_EVENTS_PER_DAY))
    limit = parse_leading_int(raw)
    if limit is None:
        raise ValueError(f"MAX_EVENTS_PER_DAY is not a number: {raw!r}")
    return limit


def utc_day_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """Start of the current UTC day and start of the next one."""
    now = now or utcnow()
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def check_event_limit(db: Session, user_id: int) -> Tuple[Optional[Response], Optional[int]]:
    """
    Enforce the daily event creation quota for a user.

    Returns:
        tuple: (error_response, status_code), both None when the user may
               create another event today.
    """
    try:
        limit = max_events_per_day()
    except ValueError:
        logging.error(f"[Events] MAX_EVENTS_PER_DAY is not a number: {os.getenv('MAX_EVENTS_PER_DAY')!r}")
        return jsonify({"message": "Server configuration error (event limit)"}), 500

    start, end = utc_day_bounds()
    created_today = (
        db.query(func.count(Event.id))
        .filter(
            Event.created_by == user_id,
            Event.created_at >= start,
            Event.created_at < end,
        )
        .scalar()
    )

    if created_today >= limit:
        return jsonify({"message": f"Daily limit ({limit}) of created events exceeded"}), 429
    return None, None
