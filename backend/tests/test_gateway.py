def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}
    assert client.get("/").get_json() == {"status": "gateway_ok"}


def test_unknown_route_is_json(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert "message" in response.get_json()


def test_method_not_allowed_is_json(client):
    response = client.patch("/users/")
    assert response.status_code == 405
    assert "message" in response.get_json()


def test_openapi_document(client):
    response = client.get("/api-docs.json")
    assert response.status_code == 200
    spec = response.get_json()
    assert spec["openapi"].startswith("3.")
    assert "/events/{eventId}/register" in spec["paths"]
    assert spec["components"]["schemas"]["EventCategory"]["enum"] == ["concert", "lecture", "exhibition"]


def test_swagger_ui_page(client):
    response = client.get("/api-docs")
    assert response.status_code == 200
    assert response.mimetype == "text/html"
    assert b"/api-docs.json" in response.data


def test_cors_headers(client):
    response = client.get("/health", headers={"Origin": "http://localhost:5173"})
    assert response.headers.get("Access-Control-Allow-Origin") in ("*", "http://localhost:5173")


def test_request_logging_hides_authorization(client, make_user, caplog):
    _, headers = make_user()

    with caplog.at_level("INFO"):
        client.get("/auth/profile", headers=headers)

    token = headers["Authorization"].split(" ", 1)[1]
    assert "GET /auth/profile 200" in caplog.text
    assert token not in caplog.text
