"""
Tests for error response formatting and exception mapping.
"""

import json
import uuid

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from estate_api.main import app
from estate_api.services.error_handler import ErrorHandlerService, GENERIC_SERVER_ERROR
from estate_api.utils.dependencies import get_listing_service
from estate_api.utils.exceptions import (
    DuplicateEmailError,
    StorageFailureError,
    UnauthorizedError,
    ValidationError
)


def body_of(response) -> dict:
    return json.loads(response.body)


class FailingListingService:
    """Stand-in listing service whose reads fail with a given exception."""

    def __init__(self, exc: Exception):
        self.exc = exc

    async def get_listing(self, listing_id):
        raise self.exc


class TestErrorHandlerService:
    """Test ErrorHandlerService formatting."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response(
            "TEST_ERROR",
            "Something happened",
            details=[{"field": "name", "message": "required"}],
            request_id="abc12345"
        )

        assert response["success"] is False
        assert response["error"]["code"] == "TEST_ERROR"
        assert response["error"]["message"] == "Something happened"
        assert response["error"]["details"] == [{"field": "name", "message": "required"}]
        assert response["error"]["request_id"] == "abc12345"
        assert response["error"]["timestamp"].endswith("Z")

    def test_details_omitted_when_empty(self):
        response = ErrorHandlerService.format_error_response("TEST_ERROR", "Something happened")

        assert "details" not in response["error"]

    def test_api_exception_keeps_code_and_status(self):
        response = ErrorHandlerService.handle_api_exception(DuplicateEmailError("alice@example.com"))

        assert response.status_code == 409
        assert body_of(response)["error"]["code"] == "DUPLICATE_EMAIL"

    def test_validation_exception_includes_field_errors(self):
        exc = ValidationError("Bad listing", field_errors=[{"field": "bedrooms", "message": "too few"}])

        body = body_of(ErrorHandlerService.handle_api_exception(exc))

        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"] == [{"field": "bedrooms", "message": "too few"}]

    @pytest.mark.parametrize("reason", ["missing_token", "invalid_token", "not_owner", None])
    def test_unauthorized_response_never_reveals_reason(self, reason):
        response = ErrorHandlerService.handle_api_exception(UnauthorizedError(reason=reason))
        body = body_of(response)

        assert response.status_code == 401
        assert body["error"]["code"] == "UNAUTHORIZED"
        assert body["error"]["message"] == "Unauthorized"
        if reason:
            assert reason not in response.body.decode()

    def test_storage_failure_is_generic(self):
        response = ErrorHandlerService.handle_api_exception(StorageFailureError())
        body = body_of(response)

        assert response.status_code == 500
        assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert body["error"]["message"] == GENERIC_SERVER_ERROR

    def test_database_error_is_generic(self):
        exc = OperationalError("SELECT secret FROM users", {}, Exception("disk I/O error"))

        response = ErrorHandlerService.handle_database_error(exc)

        assert response.status_code == 500
        assert "secret" not in response.body.decode()
        assert "disk" not in response.body.decode()

    def test_http_exception(self):
        response = ErrorHandlerService.handle_http_exception(HTTPException(status_code=404, detail="Not Found"))

        assert response.status_code == 404
        assert body_of(response)["error"]["code"] == "HTTP_404"

    def test_validation_error_details(self):
        errors = [{"loc": ("body", "email"), "msg": "value is not a valid email address", "type": "value_error"}]

        response = ErrorHandlerService.handle_validation_error(errors)
        details = body_of(response)["error"]["details"]

        assert response.status_code == 422
        assert details == [
            {"field": "body -> email", "message": "value is not a valid email address", "type": "value_error"}
        ]


class TestErrorResponsesOverHttp:
    """Test exception handlers wired into the application."""

    @pytest.mark.asyncio
    async def test_unknown_route(self, async_client: AsyncClient):
        response = await async_client.get("/api/does-not-exist")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "HTTP_404"

    @pytest.mark.asyncio
    async def test_request_validation(self, async_client: AsyncClient):
        response = await async_client.post("/api/auth/signup", json={"username": "alice"})

        assert response.status_code == 422
        body = response.json()
        assert body["error"]["code"] == "VALIDATION_ERROR"
        fields = {detail["field"] for detail in body["error"]["details"]}
        assert "body -> email" in fields
        assert "body -> password" in fields

    @pytest.mark.asyncio
    async def test_unknown_image_kind_rejected(self, async_client: AsyncClient):
        response = await async_client.put(
            f"/api/listing/update/{uuid.uuid4()}",
            json={"images": [{"kind": "ftp", "url": "x"}]}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_storage_failure_over_http(self, async_client: AsyncClient):
        app.dependency_overrides[get_listing_service] = lambda: FailingListingService(StorageFailureError())

        response = await async_client.get(f"/api/listing/get/{uuid.uuid4()}")

        assert response.status_code == 500
        assert response.json()["error"]["message"] == GENERIC_SERVER_ERROR

    @pytest.mark.asyncio
    async def test_unexpected_error_over_http(self, async_client: AsyncClient):
        app.dependency_overrides[get_listing_service] = lambda: FailingListingService(
            RuntimeError("connection string postgres://admin:hunter2@db")
        )

        # The server error middleware re-raises after responding
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(f"/api/listing/get/{uuid.uuid4()}")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "hunter2" not in response.text
