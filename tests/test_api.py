"""Tests for API endpoints."""

import httpx
import respx
from fastapi.testclient import TestClient
from httpx import Response

from myweather.config import Settings
from myweather.services.location_service import AuthorizationStatus
from tests.fakes import FakeLocationService


class TestWeatherEndpoint:
    """Tests for /api/v1/weather endpoints."""

    def test_initial_state(self, client: TestClient) -> None:
        """Test state before any refresh."""
        response = client.get("/api/v1/weather")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "idle"
        assert data["loading"] is False
        assert data["weather"] is None
        assert data["location"]["placeName"] == "Loading..."

    def test_refresh_success(self, client: TestClient, settings: Settings, onecall_payload) -> None:
        """Test refresh returns the decoded weather and place name."""
        with respx.mock:
            respx.get(settings.base_url).mock(return_value=Response(200, json=onecall_payload))

            response = client.post("/api/v1/weather/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["error"] is None
        assert data["location"] == {
            "latitude": 52.52,
            "longitude": 13.41,
            "placeName": "Berlin",
            "loading": False,
            "error": None,
        }
        assert len(data["weather"]["daily"]) == 7
        assert data["weather"]["current"]["rain"]["1h"] == 0.25

        # State is retained for later reads
        assert client.get("/api/v1/weather").json()["status"] == "success"

    def test_refresh_server_error(self, client: TestClient, settings: Settings) -> None:
        """Test upstream errors are reported in the state, not as HTTP errors."""
        with respx.mock:
            respx.get(settings.base_url).mock(return_value=Response(500, text="boom"))

            response = client.post("/api/v1/weather/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failure"
        assert data["error"] == "server error: HTTP 500"
        assert data["weather"] is None

    def test_refresh_decode_error_hides_raw_body(
        self, client: TestClient, settings: Settings
    ) -> None:
        """Test the raw body is not exposed to consumers."""
        with respx.mock:
            respx.get(settings.base_url).mock(
                return_value=Response(200, json={"lat": 1, "secret": "raw"})
            )

            data = client.post("/api/v1/weather/refresh").json()

        assert data["status"] == "failure"
        assert data["error"].startswith("failed to decode data: ")
        assert "raw_body" not in data
        assert "secret" not in str(data)

    def test_refresh_network_error(self, client: TestClient, settings: Settings) -> None:
        """Test transport errors are reported."""
        with respx.mock:
            respx.get(settings.base_url).mock(side_effect=httpx.ConnectError("offline"))

            data = client.post("/api/v1/weather/refresh").json()

        assert data["error"] == "network error: offline"

    def test_refresh_permission_denied(
        self, client: TestClient, location_service: FakeLocationService
    ) -> None:
        """Test a denied location leaves the weather idle."""
        location_service.status = AuthorizationStatus.DENIED

        data = client.post("/api/v1/weather/refresh").json()

        assert data["status"] == "idle"
        assert data["location"]["error"] == "location permission required"
        assert data["location"]["loading"] is False

    def test_refresh_unexpected_location_failure(
        self, client: TestClient, location_service: FakeLocationService
    ) -> None:
        """Test an unexpected location exception is reported instead of hanging."""
        location_service.location_failure = RuntimeError("platform exploded")

        response = client.post("/api/v1/weather/refresh")

        assert response.status_code == 200
        data = response.json()
        assert data["location"]["loading"] is False
        assert data["location"]["error"] == "error getting location: platform exploded"


class TestIconEndpoint:
    """Tests for /api/v1/icons/{code}."""

    def test_icon(self, client: TestClient) -> None:
        """Test icon resolution."""
        response = client.get("/api/v1/icons/13n")

        assert response.status_code == 200
        assert response.json() == {
            "code": "13n",
            "asset": "snow",
            "night": True,
            "url": "https://openweathermap.org/img/wn/13n@2x.png",
        }

    def test_unknown_icon_falls_back(self, client: TestClient) -> None:
        """Test unknown codes resolve to the default asset."""
        data = client.get("/api/v1/icons/99x").json()
        assert data["asset"] == "partly-cloudy"
        assert data["night"] is False


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_liveness(self, client: TestClient) -> None:
        """Test liveness probe."""
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_readiness(self, client: TestClient) -> None:
        """Test readiness probe."""
        response = client.get("/health/ready")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["checks"] == {"location": "ok", "weather": "idle"}

    def test_readiness_reports_location_error(
        self, client: TestClient, location_service: FakeLocationService
    ) -> None:
        """Test a failed location is reported while the service stays ready."""
        location_service.status = AuthorizationStatus.DENIED
        client.post("/api/v1/weather/refresh")

        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "checks": {"location": "error", "weather": "idle"},
        }


class TestMetricsEndpoint:
    """Tests for metrics endpoint and request middleware."""

    def test_metrics(self, client: TestClient) -> None:
        """Test Prometheus metrics endpoint."""
        client.get("/health/live")
        response = client.get("/metrics/")
        assert response.status_code == 200
        assert "myweather_http_requests_total" in response.text

    def test_request_id_generated(self, client: TestClient) -> None:
        """Test each response carries a request id."""
        response = client.get("/health/live")
        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_propagated(self, client: TestClient) -> None:
        """Test a well-formed inbound request id is echoed back."""
        response = client.get("/health/live", headers={"X-Request-ID": "edge-42.a"})
        assert response.headers["X-Request-ID"] == "edge-42.a"

    def test_request_id_rejected(self, client: TestClient) -> None:
        """Test a malformed inbound request id is replaced."""
        response = client.get("/health/live", headers={"X-Request-ID": "bad id;drop"})
        assert response.headers["X-Request-ID"] != "bad id;drop"
        assert len(response.headers["X-Request-ID"]) == 8


class TestOpenAPIEndpoints:
    """Tests for OpenAPI documentation endpoints."""

    def test_docs(self, client: TestClient) -> None:
        """Test Swagger docs endpoint."""
        response = client.get("/docs")
        assert response.status_code == 200

    def test_openapi_json(self, client: TestClient) -> None:
        """Test OpenAPI JSON schema."""
        response = client.get("/openapi.json")
        assert response.status_code == 200
        assert response.json()["info"]["title"] == "MyWeather API"
