"""Tests for standardized error handling."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from gateway.errors import (
    AuthError,
    ConfigurationError,
    ErrorResponse,
    NotFoundError,
    SandboxProtocolError,
    SandboxUnavailable,
    StorageError,
    ValidationError,
    register_exception_handlers,
)


class TestAPIErrors:
    @pytest.mark.parametrize(
        "cls,status,error",
        [
            (ValidationError, 400, "validation_error"),
            (AuthError, 401, "unauthorized"),
            (NotFoundError, 404, "not_found"),
            (StorageError, 500, "storage_error"),
            (ConfigurationError, 500, "configuration_error"),
            (SandboxProtocolError, 500, "sandbox_protocol_error"),
            (SandboxUnavailable, 503, "sandbox_unavailable"),
        ],
    )
    def test_taxonomy(self, cls, status, error):
        exc = cls()
        assert exc.status_code == status
        assert exc.error == error
        assert exc.detail == cls.detail

    def test_context_is_kept(self):
        error = StorageError(detail="Artifact name collision: x.js", name="x.js")
        assert error.detail == "Artifact name collision: x.js"
        assert error.context == {"name": "x.js"}
        assert str(error) == "Artifact name collision: x.js"

    def test_to_response(self):
        response = SandboxUnavailable(detail="down").to_response()
        assert response.model_dump(exclude_none=True) == {"error": "sandbox_unavailable", "detail": "down"}


class TestErrorResponse:
    def test_error_response_minimal(self):
        response = ErrorResponse(error="internal_error")
        assert response.model_dump(exclude_none=True) == {"error": "internal_error"}


class Payload(BaseModel):
    value: int


@pytest.fixture
def app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/storage")
    async def storage():
        raise StorageError(detail="disk full")

    @app.get("/unavailable")
    async def unavailable():
        raise SandboxUnavailable()

    @app.post("/payload")
    async def payload(body: Payload):
        return {"value": body.value}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    return app


class TestExceptionHandlers:
    def test_api_error_handler(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/storage")
        assert response.status_code == 500
        assert response.json() == {"error": "storage_error", "detail": "disk full"}

    def test_service_unavailable_handler(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/unavailable")
        assert response.status_code == 503
        assert response.json()["error"] == "sandbox_unavailable"

    def test_request_validation_becomes_400(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.post("/payload", json={"value": "not a number"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"].startswith("value:")

    def test_unhandled_exception(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "detail": "An unexpected error occurred"}
