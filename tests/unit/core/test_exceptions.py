"""
Tests for custom exception hierarchy.

WHY: Comprehensive exception testing ensures:
1. Exceptions serialize correctly without leaking sensitive data
2. HTTP status codes map correctly
3. Tenant mismatches look like missing resources
4. Exception handlers work as expected
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationError,
    ResourceNotFoundError,
    EmployeeNotFoundError,
    AnnouncementNotFoundError,
    TemplateRenderError,
    OrganizationAccessDenied,
)
from app.core.exception_handlers import app_exception_handler, generic_exception_handler


class TestAppException:
    """Test base AppException class."""

    def test_default_message(self):
        """Verify default message is used when none provided."""
        exc = AppException()
        assert exc.message == "An unexpected error occurred"
        assert exc.status_code == 500

    def test_custom_message(self):
        """Verify custom message overrides default."""
        exc = AppException(message="Custom error message")
        assert exc.message == "Custom error message"

    def test_custom_status_code(self):
        """Verify custom status code overrides class default."""
        exc = AppException(status_code=418)
        assert exc.status_code == 418

    def test_context_data(self):
        """Verify context data is stored."""
        exc = AppException(announcement_id=7, org_id=1)
        assert exc.context == {"announcement_id": 7, "org_id": 1}

    def test_to_dict_basic(self):
        """Verify exception serializes to dict correctly."""
        exc = AppException(message="Test error", announcement_id=7)
        result = exc.to_dict()

        assert result["error"] == "AppException"
        assert result["message"] == "Test error"
        assert result["status_code"] == 500
        assert result["details"] == {"announcement_id": 7}

    def test_to_dict_filters_sensitive_data(self):
        """Verify sensitive fields are filtered from dict."""
        exc = AppException(
            message="Test error",
            employee_id=3,
            password="secret123",
            token="abc123",
            api_key="key123",
        )
        result = exc.to_dict()

        assert "password" not in result["details"]
        assert "token" not in result["details"]
        assert "api_key" not in result["details"]
        assert result["details"]["employee_id"] == 3

    def test_to_dict_no_context(self):
        """Verify to_dict works with no context data."""
        exc = AppException(message="Test error")
        assert exc.to_dict()["details"] is None


class TestAuthenticationExceptions:
    """Test authentication-related exceptions."""

    def test_authentication_error_status_code(self):
        """Verify AuthenticationError returns 401."""
        exc = AuthenticationError()
        assert exc.status_code == 401
        assert exc.message == "Authentication failed"

    def test_authorization_error_status_code(self):
        """Verify AuthorizationError returns 403."""
        assert AuthorizationError().status_code == 403

    def test_token_errors_are_authentication_errors(self):
        """Expired and invalid tokens are both 401s."""
        assert isinstance(TokenExpiredError(), AuthenticationError)
        assert TokenExpiredError().status_code == 401
        assert "expired" in TokenExpiredError().message.lower()
        assert "invalid" in TokenInvalidError().message.lower()


class TestDomainExceptions:
    """Test announcement domain exceptions."""

    def test_validation_error_status_code(self):
        """Verify ValidationError returns 400."""
        assert ValidationError().status_code == 400

    def test_validation_error_with_context(self):
        """Validation errors carry the offending ids."""
        exc = ValidationError(message="Branch not found in organization", branch_ids=[9])
        assert exc.to_dict()["details"]["branch_ids"] == [9]

    def test_not_found_errors(self):
        """Missing announcements and employees are 404 ResourceNotFoundErrors."""
        for exc in (AnnouncementNotFoundError(), EmployeeNotFoundError()):
            assert isinstance(exc, ResourceNotFoundError)
            assert exc.status_code == 404

    def test_template_render_error_status_code(self):
        """Verify TemplateRenderError returns 422."""
        assert TemplateRenderError().status_code == 422


class TestMultiTenancyExceptions:
    """Test multi-tenancy related exceptions."""

    def test_organization_access_denied_status_code(self):
        """Verify OrganizationAccessDenied returns 404 (not 403)."""
        # WHY: Return 404 instead of 403 to prevent information disclosure
        # about whether the announcement exists in another organization
        exc = OrganizationAccessDenied()
        assert exc.status_code == 404
        assert isinstance(exc, AuthorizationError)


class TestExceptionHandlerIntegration:
    """Test exception handler integration with FastAPI."""

    @pytest.fixture
    def app(self):
        """Create test FastAPI app with exception handlers."""
        app = FastAPI()
        app.add_exception_handler(AppException, app_exception_handler)
        app.add_exception_handler(Exception, generic_exception_handler)

        @app.get("/test-not-found")
        async def test_not_found():
            raise AnnouncementNotFoundError(announcement_id=42)

        @app.get("/test-sensitive-data")
        async def test_sensitive_data():
            raise AppException(
                message="Error with sensitive data",
                employee_id=123,
                password="should-be-filtered",
            )

        @app.get("/test-unexpected")
        async def test_unexpected():
            raise RuntimeError("database exploded")

        return app

    @pytest.fixture
    def client(self, app):
        """Create test client."""
        return TestClient(app, raise_server_exceptions=False)

    def test_exception_handler_returns_json(self, client):
        """Verify exception handler returns JSON response."""
        response = client.get("/test-not-found")

        assert response.status_code == 404
        assert response.headers["content-type"] == "application/json"

        data = response.json()
        assert data["error"] == "AnnouncementNotFoundError"
        assert data["message"] == "Announcement not found"
        assert data["details"]["announcement_id"] == 42

    def test_exception_handler_filters_sensitive_data(self, client):
        """Verify exception handler filters sensitive data from response."""
        data = client.get("/test-sensitive-data").json()

        assert "password" not in data.get("details", {})
        assert data["details"]["employee_id"] == 123

    def test_generic_handler_hides_internals(self, client):
        """Unexpected errors become a generic 500 without the original message."""
        response = client.get("/test-unexpected")

        assert response.status_code == 500
        assert "exploded" not in response.text
        assert response.json()["error"] == "InternalServerError"
