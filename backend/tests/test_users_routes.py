def test_list_users(client, make_user):
    first_id, _ = make_user(name="First", email="first@example.com")
    second_id, _ = make_user(name="Second", email="second@example.com")

    response = client.get("/users/")
    assert response.status_code == 200
    data = response.get_json()
    assert [u["id"] for u in data] == [first_id, second_id]
    assert set(data[0]) == {"id", "name", "email", "createdAt"}


def test_list_users_empty(client):
    response = client.get("/users/")
    assert response.status_code == 200
    assert response.get_json() == []


def test_list_users_database_error(client, mocker):
    from sqlalchemy.exc import OperationalError

    mocker.patch(
        "backend.users_service.routes.get_db",
        side_effect=OperationalError("SELECT", {}, Exception("db down")),
    )

    response = client.get("/users/")
    assert response.status_code == 500
    assert response.get_json()["message"] == "Failed to retrieve users"
