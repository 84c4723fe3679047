"""
OpenAPI 3 description of the API and the routes that serve it:

- /api-docs.json : the raw document
- /api-docs      : Swagger UI page (assets loaded from a CDN)
"""

import os
from typing import Any, Dict

from flask import Blueprint, Response, jsonify

from backend.events_service.models import EventCategory

docs_bp = Blueprint("docs", __name__)

SWAGGER_UI_VERSION = "5"


def _ref(name: str) -> Dict[str, str]:
    return {"$ref": f"#/components/schemas/{name}"}


def _json(schema: Dict[str, Any], description: str) -> Dict[str, Any]:
    return {"description": description, "content": {"application/json": {"schema": schema}}}


def _error(description: str) -> Dict[str, Any]:
    return _json(_ref("ErrorResponse"), description)


def _event_id_param(name: str = "eventId") -> Dict[str, Any]:
    return {"name": name, "in": "path", "required": True, "schema": {"type": "integer"}}


SECURED = [{"bearerAuth": []}]

COMPONENTS: Dict[str, Any] = {
    "securitySchemes": {
        "bearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Send the JWT as **Bearer {token}**",
        }
    },
    "schemas": {
        "EventCategory": {
            "type": "string",
            "enum": EventCategory.values(),
            "example": "concert",
        },
        "Event": {
            "type": "object",
            "required": ["id", "title", "date", "category", "createdBy"],
            "properties": {
                "id": {"type": "integer", "example": 1},
                "title": {"type": "string", "example": "The Rockers live"},
                "description": {"type": "string", "nullable": True},
                "date": {"type": "string", "format": "date-time", "example": "2024-08-15T20:00:00Z"},
                "category": _ref("EventCategory"),
                "createdBy": {"type": "integer", "example": 1},
                "createdAt": {"type": "string", "format": "date-time"},
                "updatedAt": {"type": "string", "format": "date-time"},
                "participantsCount": {"type": "integer", "example": 15},
                "isCurrentUserParticipant": {"type": "boolean", "example": False},
            },
        },
        "User": {
            "type": "object",
            "required": ["id", "name", "email"],
            "properties": {
                "id": {"type": "integer", "example": 1},
                "name": {"type": "string", "example": "John Doe"},
                "email": {"type": "string", "format": "email", "example": "john.doe@example.com"},
                "createdAt": {"type": "string", "format": "date-time"},
            },
        },
        "Participant": {
            "type": "object",
            "properties": {
                "id": {"type": "integer"},
                "name": {"type": "string"},
                "email": {"type": "string", "format": "email"},
            },
        },
        "UserRegistrationInput": {
            "type": "object",
            "required": ["name", "email", "password"],
            "properties": {
                "name": {"type": "string", "example": "Jane Doe"},
                "email": {"type": "string", "format": "email", "example": "jane.doe@example.com"},
                "password": {"type": "string", "format": "password", "minLength": 6},
            },
        },
        "UserLoginInput": {
            "type": "object",
            "required": ["email", "password"],
            "properties": {
                "email": {"type": "string", "format": "email"},
                "password": {"type": "string", "format": "password"},
            },
        },
        "LoginResponse": {
            "type": "object",
            "properties": {
                "token": {"type": "string", "example": "Bearer eyJhbGciOi..."},
                "user": _ref("Participant"),
            },
        },
        "CreateEventInput": {
            "type": "object",
            "required": ["title", "date", "category"],
            "properties": {
                "title": {"type": "string", "maxLength": 255},
                "description": {"type": "string", "nullable": True},
                "date": {"type": "string", "format": "date-time"},
                "category": _ref("EventCategory"),
            },
        },
        "UpdateEventInput": {
            "type": "object",
            "properties": {
                "title": {"type": "string", "maxLength": 255},
                "description": {"type": "string", "nullable": True},
                "date": {"type": "string", "format": "date-time"},
                "category": _ref("EventCategory"),
            },
        },
        "Message": {
            "type": "object",
            "properties": {"message": {"type": "string"}},
        },
        "ErrorResponse": {
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "details": {"type": "string"},
            },
        },
    },
}

PATHS: Dict[str, Any] = {
    "/auth/register": {
        "post": {
            "tags": ["Auth"],
            "summary": "Register a new user",
            "requestBody": {"required": True, "content": {"application/json": {"schema": _ref("UserRegistrationInput")}}},
            "responses": {
                "201": _json(_ref("Message"), "User registered"),
                "400": _error("Validation error or email already in use"),
            },
        }
    },
    "/auth/login": {
        "post": {
            "tags": ["Auth"],
            "summary": "Log in and receive a JWT",
            "requestBody": {"required": True, "content": {"application/json": {"schema": _ref("UserLoginInput")}}},
            "responses": {
                "200": _json(_ref("LoginResponse"), "Logged in"),
                "400": _error("Missing credentials"),
                "401": _error("Invalid email or password"),
            },
        }
    },
    "/auth/logout": {
        "post": {
            "tags": ["Auth"],
            "summary": "Revoke the current token",
            "security": SECURED,
            "responses": {
                "200": _json(_ref("Message"), "Logged out"),
                "401": _error("Not authenticated or token revoked"),
            },
        }
    },
    "/auth/profile": {
        "get": {
            "tags": ["Auth"],
            "summary": "Current user's profile",
            "security": SECURED,
            "responses": {
                "200": _json(_ref("User"), "Profile"),
                "401": _error("Not authenticated"),
            },
        },
        "delete": {
            "tags": ["Auth"],
            "summary": "Delete the current account with its events and registrations",
            "security": SECURED,
            "responses": {
                "200": _json(_ref("Message"), "Account deleted"),
                "401": _error("Not authenticated"),
            },
        },
    },
    "/users/": {
        "get": {
            "tags": ["Users"],
            "summary": "List users",
            "responses": {"200": _json({"type": "array", "items": _ref("User")}, "Users")},
        }
    },
    "/events/": {
        "get": {
            "tags": ["Events"],
            "summary": "List events (optionally by category)",
            "parameters": [{"name": "category", "in": "query", "required": False, "schema": _ref("EventCategory")}],
            "responses": {
                "200": _json({"type": "array", "items": _ref("Event")}, "Events ordered by date"),
                "400": _error("Invalid category"),
            },
        },
        "post": {
            "tags": ["Events"],
            "summary": "Create an event",
            "security": SECURED,
            "requestBody": {"required": True, "content": {"application/json": {"schema": _ref("CreateEventInput")}}},
            "responses": {
                "201": _json(_ref("Event"), "Created"),
                "400": _error("Validation error"),
                "401": _error("Not authenticated"),
                "429": _error("Daily creation limit reached"),
            },
        },
    },
    "/events/my": {
        "get": {
            "tags": ["Events"],
            "summary": "Events created by the current user",
            "security": SECURED,
            "responses": {"200": _json({"type": "array", "items": _ref("Event")}, "Events")},
        }
    },
    "/events/{id}": {
        "parameters": [_event_id_param("id")],
        "get": {
            "tags": ["Events"],
            "summary": "Get one event",
            "responses": {
                "200": _json(_ref("Event"), "Event"),
                "400": _error("Invalid event ID"),
                "404": _error("Not found"),
            },
        },
        "put": {
            "tags": ["Events"],
            "summary": "Update an event (creator only)",
            "security": SECURED,
            "requestBody": {"required": True, "content": {"application/json": {"schema": _ref("UpdateEventInput")}}},
            "responses": {
                "200": _json(_ref("Event"), "Updated"),
                "400": _error("Validation error or invalid event ID"),
                "403": _error("Not the creator"),
                "404": _error("Not found"),
            },
        },
        "delete": {
            "tags": ["Events"],
            "summary": "Delete an event (creator only)",
            "security": SECURED,
            "responses": {
                "204": {"description": "Deleted"},
                "400": _error("Invalid event ID"),
                "403": _error("Not the creator"),
                "404": _error("Not found"),
            },
        },
    },
    "/events/{eventId}/participants": {
        "parameters": [_event_id_param()],
        "get": {
            "tags": ["Participation"],
            "summary": "Users registered for an event",
            "security": SECURED,
            "responses": {
                "200": _json({"type": "array", "items": _ref("Participant")}, "Participants ordered by name"),
                "400": _error("Invalid event ID"),
                "404": _error("Not found"),
            },
        },
    },
    "/events/{eventId}/register": {
        "parameters": [_event_id_param()],
        "post": {
            "tags": ["Participation"],
            "summary": "Register for an event",
            "security": SECURED,
            "responses": {
                "201": _json(_ref("Event"), "Registered"),
                "400": _error("Invalid event ID"),
                "403": _error("Own event"),
                "404": _error("Not found"),
                "409": _error("Already registered"),
            },
        },
        "delete": {
            "tags": ["Participation"],
            "summary": "Cancel a registration",
            "security": SECURED,
            "responses": {
                "200": _json(_ref("Event"), "Registration cancelled"),
                "400": _error("Invalid event ID"),
                "404": _error("Event not found or not registered"),
            },
        },
    },
}


def build_openapi_spec() -> Dict[str, Any]:
    port = os.getenv("PORT", "3000")
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Event Management API",
            "version": "1.0.0",
            "description": "Users and events with JWT authentication.",
        },
        "servers": [{"url": f"http://localhost:{port}", "description": "Local development server"}],
        "components": COMPONENTS,
        "paths": PATHS,
    }


SWAGGER_UI_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Event Management API</title>
  <link rel="stylesheet" href="https://unpkg.com/swagger-ui-dist@{version}/swagger-ui.css">
</head>
<body>
  <div id="swagger-ui"></div>
  <script src="https://unpkg.com/swagger-ui-dist@{version}/swagger-ui-bundle.js"></script>
  <script>
    window.ui = SwaggerUIBundle({{ url: "/api-docs.json", dom_id: "#swagger-ui" }});
  </script>
</body>
</html>
"""


@docs_bp.route("/api-docs.json", methods=["GET"])
def openapi_json():
    return jsonify(build_openapi_spec()), 200


@docs_bp.route("/api-docs", methods=["GET"])
def swagger_ui():
    return Response(SWAGGER_UI_PAGE.format(version=SWAGGER_UI_VERSION), mimetype="text/html")
