"""
Integration Tests for SmartStyle v1.0.0
Tests for security features: Input Validation, Auth, Health.
"""
import io
import pytest
from datetime import date
from unittest.mock import patch

from smartstyle.config import Settings
from smartstyle.core.validation import (
    ValidationError,
    parse_target_date,
    validate_recommend_request,
    sanitize_error_message,
)

AUTH = {"Authorization": "Bearer valid-token"}


# ==================== HEALTH CHECK TESTS ====================

class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_ok(self, client):
        """Health endpoint should return status ok."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "1.0.0"

    def test_health_reports_dependencies(self, client):
        """Health should describe cache, database and rate limit state."""
        data = client.get("/health").json()

        assert data["mongo"]["status"] == "disconnected"
        assert data["cache"]["type"] == "memory_lru"
        assert data["rate_limit"]["window_seconds"] == 3600

    def test_metrics_endpoint(self, client):
        data = client.get("/metrics").json()

        assert data["total_requests"] == 0
        assert data["cache_hit_ratio"] == 0.0


# ==================== INPUT VALIDATION TESTS ====================

class TestInputValidation:
    """Tests for input validation."""

    def test_validation_rejects_large_file(self, client, auth_as):
        """Files over 10MB should be rejected."""
        large_content = b"x" * (15 * 1024 * 1024)

        response = client.post(
            "/api/colors/extract",
            files={"image": ("large.jpg", io.BytesIO(large_content), "image/jpeg")},
            headers=AUTH
        )

        assert response.status_code == 413
        assert "too large" in response.json()["detail"].lower()

    def test_validation_rejects_invalid_mime(self, client, auth_as):
        """Non-image MIME types should be rejected."""
        response = client.post(
            "/api/colors/extract",
            files={"image": ("doc.pdf", io.BytesIO(b"%PDF-1.4 fake pdf content"), "application/pdf")},
            headers=AUTH
        )

        assert response.status_code == 415
        assert "unsupported" in response.json()["detail"].lower()

    def test_validation_rejects_undecodable_image(self, client, auth_as):
        """Files that can't be decoded should be rejected."""
        response = client.post(
            "/api/colors/extract",
            files={"image": ("fake.jpg", io.BytesIO(b"not an image at all"), "image/jpeg")},
            headers=AUTH
        )

        assert response.status_code == 400
        assert "decode" in response.json()["detail"].lower()

    def test_recommend_body_fields(self):
        body = {
            "userId": "u1",
            "occasion": "  office  ",
            "date": "2026-10-20T09:00:00Z",
            "wardrobeItems": [{"id": "a"}],
        }

        parsed = validate_recommend_request(body)

        assert parsed["occasion"] == "office"
        assert parsed["date"] == date(2026, 10, 20)

    def test_recommend_body_occasion_too_long(self):
        body = {"userId": "u1", "occasion": "x" * 51, "wardrobeItems": [{"id": "a"}]}

        with pytest.raises(ValidationError) as exc:
            validate_recommend_request(body)

        assert exc.value.status_code == 400

    def test_recommend_body_non_object_item(self):
        body = {"userId": "u1", "occasion": "gym", "wardrobeItems": ["shirt"]}

        with pytest.raises(ValidationError, match=r"wardrobeItems\[0\]"):
            validate_recommend_request(body)

    @pytest.mark.parametrize("value", ["tomorrow", "2026-13-01", 20261020])
    def test_bad_dates(self, value):
        with pytest.raises(ValidationError):
            parse_target_date(value)

    def test_plain_date(self):
        assert parse_target_date("2026-10-20") == date(2026, 10, 20)
        assert parse_target_date(None) is None

    def test_sanitize_error_message(self):
        message = sanitize_error_message("<script>alert('x')</script>" + "a" * 300)

        assert "<" not in message
        assert "&#x2F;" in message
        assert len(message) == 200
        assert sanitize_error_message(None) == "An error occurred"


# ==================== AUTHENTICATION TESTS ====================

class TestAuthentication:
    """Tests for Firebase bearer authentication."""

    def test_auth_rejects_missing_header(self, client):
        """Requests without a bearer token should be rejected."""
        response = client.get("/api/wardrobe/stats")

        assert response.status_code == 401
        assert "missing" in response.json()["detail"].lower()
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_auth_rejects_non_bearer(self, client):
        response = client.get("/api/wardrobe/stats", headers={"Authorization": "Basic abc"})

        assert response.status_code == 401

    def test_auth_rejects_invalid_token(self, client):
        """Tokens Firebase cannot verify should be rejected."""
        with patch("smartstyle.core.auth.verify_id_token", return_value=None):
            response = client.get("/api/wardrobe/stats", headers=AUTH)

        assert response.status_code == 401
        assert "invalid" in response.json()["detail"].lower()

    def test_auth_accepts_valid_token(self, client, auth_as):
        response = client.get("/api/wardrobe/stats", headers=AUTH)

        assert response.status_code == 200
        auth_as.assert_called_once_with("valid-token")

    def test_auth_bypass(self, client):
        """Dev mode accepts requests without a token."""
        with patch("smartstyle.core.auth.get_settings", return_value=Settings(bypass_auth=True)):
            response = client.get("/api/wardrobe/stats")

        assert response.status_code == 200
        assert response.json()["total_items"] == 0

    def test_firebase_failure_is_invalid_token(self):
        from smartstyle.core.auth import verify_id_token

        with patch("smartstyle.core.auth._get_firebase_app", side_effect=ValueError("no credentials")):
            assert verify_id_token("anything") is None


# ==================== RUN TESTS ====================

if __name__ == "__main__":
    pytest.main([__file__, "-v"])
