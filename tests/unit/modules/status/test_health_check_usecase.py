from unittest.mock import AsyncMock, patch

import pytest

from src.modules.status.usecase.health_check_usecase import HealthCheckUseCase
from src.shared.domain.exception.device_exceptions import KVTransportError
from tests.factories import InMemoryKVClient


class TestHealthCheckUseCase:
    @pytest.mark.asyncio
    async def test_check_system_health(self):
        usecase = HealthCheckUseCase(InMemoryKVClient())

        result = await usecase.check_system_health()

        assert result.status == "healthy"
        assert set(result.services) == {"api", "kv_store", "notification"}
        assert result.services["kv_store"]["namespace_id"] == "test-namespace"

    @pytest.mark.asyncio
    async def test_check_system_health_degraded_when_kv_unreachable(self):
        kv_client = InMemoryKVClient()
        kv_client.check_namespace = AsyncMock(side_effect=KVTransportError("HTTP 403: Authentication error", 403))
        usecase = HealthCheckUseCase(kv_client)

        result = await usecase.check_system_health()

        assert result.status == "degraded"
        assert result.services["kv_store"]["status"] == "unhealthy"
        assert result.services["kv_store"]["upstream_status"] == 403

    @pytest.mark.asyncio
    async def test_missing_credentials_skip_the_probe(self):
        kv_client = InMemoryKVClient()
        kv_client.check_namespace = AsyncMock()
        usecase = HealthCheckUseCase(kv_client)

        with patch("src.modules.status.usecase.health_check_usecase.settings") as mock_settings:
            mock_settings.missing_credentials.return_value = ["CLOUDFLARE_API_TOKEN"]
            status = await usecase._check_kv_status()

        assert status["status"] == "unhealthy"
        assert "CLOUDFLARE_API_TOKEN" in status["message"]
        kv_client.check_namespace.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_check_kv_store(self):
        usecase = HealthCheckUseCase(InMemoryKVClient())

        result = await usecase.check_kv_store()

        assert result.service_name == "kv_store"
        assert result.status == "healthy"
        assert result.endpoint == "https://kv.test/namespaces/test-namespace"
        assert result.details["namespace_id"] == "test-namespace"

    def test_notification_disabled_is_healthy(self):
        usecase = HealthCheckUseCase(InMemoryKVClient())

        with patch("src.modules.status.usecase.health_check_usecase.settings") as mock_settings:
            mock_settings.NOTIFICATION_ENABLED = False
            status = usecase._check_notification_config()

        assert status["status"] == "healthy"
