import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from droppers.errors import InternalError, NotFoundError, register_exception_handlers
from droppers.settings import settings


@pytest.fixture
def failing_client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/broken")
    def broken():
        raise InternalError("orders table is gone")

    @app.get("/missing")
    def missing():
        raise NotFoundError("Order not found")

    with TestClient(app) as c:
        yield c


def test_internal_error_shows_detail_outside_production(failing_client, monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "development")
    resp = failing_client.get("/broken")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error", "error": "orders table is gone"}


def test_internal_error_is_redacted_in_production(failing_client, monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "production")
    resp = failing_client.get("/broken")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Internal server error"}


def test_client_errors_keep_their_message_in_production(failing_client, monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "production")
    resp = failing_client.get("/missing")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Order not found"}
