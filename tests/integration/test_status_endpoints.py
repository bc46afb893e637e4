from unittest.mock import AsyncMock, patch

from src.shared.domain.models.status_models import HealthCheckResponse


class TestStatusEndpoints:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["devices"] == "/dot/api/devices"

    def test_liveness(self, client):
        response = client.get("/health-check")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health_check(self, client):
        response = client.get("/status/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["services"]) == {"api", "kv_store", "notification"}
        assert body["services"]["kv_store"]["status"] == "healthy"

    def test_health_check_error(self, client):
        with patch(
            "src.modules.status.usecase.health_check_usecase.HealthCheckUseCase.check_system_health",
            new_callable=AsyncMock,
            side_effect=Exception("Error checking system health"),
        ):
            response = client.get("/status/health")

            assert response.status_code == 500
            assert "Error checking system health" in response.json()["detail"]

    def test_health_check_degraded(self, client):
        degraded = HealthCheckResponse(
            status="degraded",
            timestamp="2025-05-12T10:30:00Z",
            environment="test",
            version="0.2.0",
            services={
                "api": {"status": "healthy", "message": "API is running"},
                "kv_store": {"status": "unhealthy", "message": "KV namespace unreachable: HTTP 403"},
                "notification": {"status": "healthy", "message": "Content notifications enabled"},
            },
            response_time_ms=42,
        )
        with patch(
            "src.modules.status.usecase.health_check_usecase.HealthCheckUseCase.check_system_health",
            new_callable=AsyncMock,
            return_value=degraded,
        ):
            response = client.get("/status/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_kv_store_status(self, client):
        response = client.get("/status/kv-store")

        assert response.status_code == 200
        body = response.json()
        assert body["service_name"] == "kv_store"
        assert body["details"]["namespace_id"] == "test-namespace"

    def test_config_hides_token(self, client):
        response = client.get("/status/config")

        assert response.status_code == 200
        body = response.json()
        assert "test-token" not in response.text
        assert body["kv"]["credentials"] == "configured"
        assert "timestamp" in body
