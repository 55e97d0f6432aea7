"""Tests for HTTP error translation."""

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from placetrack.api.app import create_app, get_services
from placetrack.core.errors import Conflict, InvalidState, NotFound, StoreError, ValidationFailed
from placetrack.db.session import get_db
from placetrack.services import TrackingServices


@pytest.fixture
def app(test_settings):
    app = create_app(test_settings)

    @app.get("/missing")
    def missing():
        raise NotFound("Place", "p-404")

    @app.get("/conflict")
    def conflict():
        raise Conflict("Keyword already attached")

    @app.get("/inactive")
    def inactive():
        raise InvalidState("Cannot record ranking for inactive place keyword")

    @app.get("/invalid")
    def invalid():
        raise ValidationFailed(details=[{"field": "rank", "errors": ["must be >= 1"]}])

    @app.get("/store")
    def store():
        raise StoreError("database is locked")

    return app


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.mark.parametrize(
    "path,status_code,kind",
    [
        ("/missing", 404, "not_found"),
        ("/conflict", 409, "conflict"),
        ("/inactive", 400, "invalid_state"),
        ("/invalid", 422, "validation_failed"),
        ("/store", 503, "store_unavailable"),
    ],
)
def test_error_kinds_map_to_status(client, path, status_code, kind):
    response = client.get(path)
    assert response.status_code == status_code
    assert response.json()["error"] == kind


def test_not_found_body(client):
    body = client.get("/missing").json()
    assert body == {"error": "not_found", "message": "Place with id p-404 not found"}


def test_validation_details_included(client):
    body = client.get("/invalid").json()
    assert body["message"] == "Validation failed"
    assert body["details"] == [{"field": "rank", "errors": ["must be >= 1"]}]


def test_request_services_commit(app, db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    @app.post("/users")
    def create_user(services: TrackingServices = Depends(get_services)):
        return services.users.create_user({"email": "api@example.com", "name": "Api"}).model_dump(mode="json")

    client = TestClient(app)
    response = client.post("/users")
    assert response.status_code == 200
    assert response.json()["email"] == "api@example.com"

    duplicate = client.post("/users")
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "conflict"
