import sqlite3

from sqlalchemy.exc import IntegrityError

import errors


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["components"]["database"] == "connected"


def test_security_headers(client):
    response = client.get("/health")
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Not Found", "code": "NOT_FOUND"}


def test_validation_error_lists_fields(client):
    response = client.post("/api/auth/signup", json={"name": "A", "email": "not-an-email"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    fields = {error["field"] for error in body["errors"]}
    assert {"email", "password"} <= fields


def test_sqlstate_from_postgres_driver():
    class PgError(Exception):
        pgcode = "23505"

    exc = IntegrityError("INSERT", {}, PgError("duplicate key"))
    assert errors.sqlstate_of(exc) == errors.UNIQUE_VIOLATION


def test_sqlstate_from_sqlite_message():
    exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("FOREIGN KEY constraint failed"))
    assert errors.sqlstate_of(exc) == errors.FOREIGN_KEY_VIOLATION


def test_sqlstate_unknown():
    exc = IntegrityError("INSERT", {}, sqlite3.IntegrityError("something else"))
    assert errors.sqlstate_of(exc) is None
