"""
Quick API smoke test against a running server (python -m backend.gateway.server).
Tests: register, login, create event, register a second user for it,
list events, logout and reuse of the revoked token.

    python testing/smoke_api.py [base_url]
"""

import sys
import uuid

import requests

BASE = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3000"
SUFFIX = uuid.uuid4().hex[:8]


def register_and_login(name: str) -> str:
    email = f"{name.lower()}.{SUFFIX}@example.com"
    r = requests.post(f"{BASE}/auth/register", json={
        "name": name,
        "email": email,
        "password": "pass123456"
    })
    print(f"REGISTER {name}:", r.status_code, r.json())

    r = requests.post(f"{BASE}/auth/login", json={
        "email": email,
        "password": "pass123456"
    })
    print(f"LOGIN {name}:", r.status_code, r.json())
    # Already in "Bearer <jwt>" form
    return r.json().get("token")


# 1) Two users
organizer_token = register_and_login("Organizer")
guest_token = register_and_login("Guest")
organizer = {"Authorization": organizer_token}
guest = {"Authorization": guest_token}

# 2) Create a new event
r = requests.post(f"{BASE}/events/", json={
    "title": "First Test Event",
    "description": "Simple test",
    "date": "2030-10-20T10:00:00Z",
    "category": "lecture"
}, headers=organizer)
print("CREATE EVENT:", r.status_code, r.json())
event_id = r.json().get("id")

# 3) Guest registers, organizer looks at the participants
r = requests.post(f"{BASE}/events/{event_id}/register", headers=guest)
print("REGISTER FOR EVENT:", r.status_code, r.json())

r = requests.get(f"{BASE}/events/{event_id}/participants", headers=organizer)
print("PARTICIPANTS:", r.status_code, r.json())

# 4) List all events
r = requests.get(f"{BASE}/events/", headers=guest)
print("LIST EVENTS:", r.status_code, len(r.json()), "events")

# 5) Logout, then the same token must be refused
r = requests.post(f"{BASE}/auth/logout", headers=guest)
print("LOGOUT:", r.status_code, r.json())

r = requests.get(f"{BASE}/auth/profile", headers=guest)
print("PROFILE WITH REVOKED TOKEN:", r.status_code, r.json())
