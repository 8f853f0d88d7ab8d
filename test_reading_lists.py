import pytest

import models
from conftest import bearer, create_book, create_user


@pytest.fixture
def other_headers(db_session):
    return bearer(create_user(db_session, name="Other", email="other@example.com"))


def _create_list(client, headers, **payload):
    payload.setdefault("name", "Gothic")
    response = client.post("/api/reading-lists", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_reading_lists_require_token(client):
    assert client.get("/api/reading-lists").status_code == 401
    assert client.post("/api/reading-lists", json={"name": "Gothic"}).status_code == 401


def test_create_reading_list(client, user, user_headers):
    created = _create_list(client, user_headers, description="Dark tales")
    assert created["user_id"] == user.id
    assert created["name"] == "Gothic"
    assert created["description"] == "Dark tales"
    assert created["is_public"] is True


def test_create_reading_list_requires_name(client, user_headers):
    response = client.post("/api/reading-lists", json={"name": ""}, headers=user_headers)
    assert response.status_code == 400


def test_list_own_reading_lists(client, user_headers, other_headers):
    _create_list(client, user_headers, name="Mine")
    _create_list(client, other_headers, name="Theirs")

    response = client.get("/api/reading-lists", headers=user_headers)
    assert response.status_code == 200
    assert [entry["name"] for entry in response.json()["lists"]] == ["Mine"]


def test_get_reading_list_with_books(client, db_session, user_headers):
    book = create_book(db_session)
    created = _create_list(client, user_headers)
    client.post(f"/api/reading-lists/{created['id']}/books/{book.id}", headers=user_headers)

    response = client.get(f"/api/reading-lists/{created['id']}", headers=user_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["list"]["name"] == "Gothic"
    assert body["list"]["creator_name"] == "Reader"
    assert [entry["title"] for entry in body["books"]] == ["Dracula"]


def test_public_list_visible_to_others(client, user_headers, other_headers):
    created = _create_list(client, user_headers)
    response = client.get(f"/api/reading-lists/{created['id']}", headers=other_headers)
    assert response.status_code == 200


def test_private_list_hidden_from_others(client, user_headers, other_headers):
    created = _create_list(client, user_headers, isPublic=False)
    assert created["is_public"] is False

    assert client.get(f"/api/reading-lists/{created['id']}", headers=user_headers).status_code == 200
    response = client.get(f"/api/reading-lists/{created['id']}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["error"] == "List not found"


def test_update_reading_list(client, user_headers):
    created = _create_list(client, user_headers)
    response = client.put(
        f"/api/reading-lists/{created['id']}",
        json={"name": "Horror", "isPublic": False},
        headers=user_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Horror"
    assert body["is_public"] is False
    assert body["description"] is None


def test_update_reading_list_not_owner(client, user_headers, other_headers):
    created = _create_list(client, user_headers)
    response = client.put(f"/api/reading-lists/{created['id']}", json={"name": "Mine now"}, headers=other_headers)
    assert response.status_code == 404


def test_delete_reading_list(client, db_session, user_headers):
    book = create_book(db_session)
    created = _create_list(client, user_headers)
    client.post(f"/api/reading-lists/{created['id']}/books/{book.id}", headers=user_headers)

    response = client.delete(f"/api/reading-lists/{created['id']}", headers=user_headers)
    assert response.status_code == 200
    assert client.get(f"/api/reading-lists/{created['id']}", headers=user_headers).status_code == 404
    assert db_session.query(models.ReadingListBook).count() == 0
    assert db_session.query(models.Book).count() == 1


def test_add_book_twice_keeps_one_row(client, db_session, user_headers):
    book = create_book(db_session)
    created = _create_list(client, user_headers)
    url = f"/api/reading-lists/{created['id']}/books/{book.id}"

    first = client.post(url, headers=user_headers)
    assert first.status_code == 200
    assert first.json() == {"success": True, "message": "Book added to list", "added": True}

    second = client.post(url, headers=user_headers)
    assert second.status_code == 200
    assert second.json()["added"] is False

    assert db_session.query(models.ReadingListBook).filter_by(reading_list_id=created["id"]).count() == 1


def test_add_missing_book_to_list(client, user_headers):
    created = _create_list(client, user_headers)
    response = client.post(f"/api/reading-lists/{created['id']}/books/9999", headers=user_headers)
    assert response.status_code == 400


def test_remove_book_from_list(client, db_session, user_headers):
    book = create_book(db_session)
    created = _create_list(client, user_headers)
    url = f"/api/reading-lists/{created['id']}/books/{book.id}"
    client.post(url, headers=user_headers)

    first = client.delete(url, headers=user_headers)
    assert first.status_code == 200
    assert first.json()["removed"] is True

    second = client.delete(url, headers=user_headers)
    assert second.status_code == 200
    assert second.json()["removed"] is False


def test_membership_requires_owner(client, db_session, user_headers, other_headers):
    book = create_book(db_session)
    created = _create_list(client, user_headers)
    url = f"/api/reading-lists/{created['id']}/books/{book.id}"

    assert client.post(url, headers=other_headers).status_code == 404
    assert client.delete(url, headers=other_headers).status_code == 404
