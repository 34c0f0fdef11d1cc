"""
Unit tests for error handling middleware and exception handlers
"""

import pytest
from fastapi import FastAPI, Query
from fastapi.testclient import TestClient
from app.core.config import settings
from app.deps.exceptions import (
    AccessDeniedError,
    MessageParseError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from app.middleware.error_handling import ErrorHandlingMiddleware, register_exception_handlers
from app.middleware.logging import StructuredLoggingMiddleware

# Create a test app wired the same way as the real one
test_app = FastAPI()
register_exception_handlers(test_app)
test_app.add_middleware(ErrorHandlingMiddleware)
test_app.add_middleware(StructuredLoggingMiddleware)

@test_app.get("/test-success")
async def success_endpoint():
    return {"message": "success"}

@test_app.get("/test-not-found")
async def not_found_endpoint():
    raise NotFoundError("Session not found: alice_ia-general_1_abcdef12")

@test_app.get("/test-access-denied")
async def access_denied_endpoint():
    raise AccessDeniedError("Access denied to session: bob_ia-general_1_abcdef12")

@test_app.get("/test-validation")
async def validation_endpoint():
    raise ValidationError("Unknown agent type: ia-penal")

@test_app.get("/test-parse-error")
async def parse_error_endpoint():
    raise MessageParseError("Invalid message payload: Invalid JSON")

@test_app.get("/test-unauthenticated")
async def unauthenticated_endpoint():
    raise UnauthenticatedError()

@test_app.get("/test-unexpected-error")
async def unexpected_error_endpoint():
    raise ValueError("Unexpected error")

@test_app.get("/test-store-failure")
async def store_failure_endpoint():
    raise ConnectionError("database unavailable")

@test_app.get("/test-query")
async def query_endpoint(size: int = Query(..., ge=1)):
    return {"size": size}

client = TestClient(test_app, raise_server_exceptions=False)


class TestErrorHandling:
    """Test error responses"""

    def test_successful_request(self):
        response = client.get("/test-success")

        assert response.status_code == 200
        assert response.json()["message"] == "success"

    @pytest.mark.parametrize("path,status_code,error_code", [
        ("/test-not-found", 404, "NOT_FOUND"),
        ("/test-access-denied", 403, "FORBIDDEN"),
        ("/test-validation", 400, "BAD_REQUEST"),
        ("/test-parse-error", 422, "MESSAGE_PARSE_ERROR"),
        ("/test-unauthenticated", 401, "UNAUTHORIZED"),
    ])
    def test_domain_errors_map_to_status(self, path, status_code, error_code):
        """Each domain error has its own status and error code"""
        response = client.get(path)

        assert response.status_code == status_code
        data = response.json()
        assert data["error_code"] == error_code
        assert data["status_code"] == status_code
        assert data["path"] == path
        assert isinstance(data["timestamp"], int)
        assert "correlation_id" in data

    def test_error_message_is_returned(self):
        response = client.get("/test-validation")

        assert response.json()["error"] == "Unknown agent type: ia-penal"

    def test_unauthenticated_sets_www_authenticate(self):
        response = client.get("/test-unauthenticated")

        assert response.headers["WWW-Authenticate"] == "Bearer"
        assert response.json()["error"] == "Could not validate credentials"

    def test_unexpected_exception_handling(self):
        """Unexpected exceptions become a 500 without leaking details"""
        response = client.get("/test-unexpected-error")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal server error"
        assert data["error_code"] == "INTERNAL_ERROR"
        assert data["path"] == "/test-unexpected-error"
        assert "details" not in data

    def test_store_failure_is_internal_error(self):
        response = client.get("/test-store-failure")

        assert response.status_code == 500
        assert response.json()["error_code"] == "INTERNAL_ERROR"

    def test_debug_mode_includes_exception_details(self, monkeypatch):
        monkeypatch.setattr(settings, "debug", True)

        response = client.get("/test-unexpected-error")

        details = response.json()["details"]
        assert details["exception_type"] == "ValueError"
        assert details["exception_message"] == "Unexpected error"

    def test_request_validation_error(self):
        response = client.get("/test-query", params={"size": 0})

        assert response.status_code == 422
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["details"]["validation_errors"][0]["loc"] == ["query", "size"]

    def test_unknown_route_uses_error_body(self):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"


class TestCorrelationId:
    """Test correlation id propagation"""

    def test_generated_when_missing(self):
        response = client.get("/test-success")

        assert response.headers["X-Correlation-ID"]

    def test_caller_id_is_reused(self):
        response = client.get("/test-not-found", headers={"X-Correlation-ID": "req-123"})

        assert response.headers["X-Correlation-ID"] == "req-123"
        assert response.json()["correlation_id"] == "req-123"

    def test_error_body_matches_header(self):
        response = client.get("/test-validation")

        assert response.json()["correlation_id"] == response.headers["X-Correlation-ID"]
