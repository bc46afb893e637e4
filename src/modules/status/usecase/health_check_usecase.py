import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict

from src.app.config import settings
from src.shared.domain.exception.device_exceptions import TransportError
from src.shared.domain.models.status_models import HealthCheckResponse, ServiceStatusResponse
from src.shared.infra.external.cloudflare.kv_client import KVClient

logger = logging.getLogger(__name__)


class HealthCheckUseCase:
    def __init__(self, kv_client: KVClient):
        self.kv_client = kv_client

    async def check_system_health(self) -> HealthCheckResponse:
        start_time = time.time()

        api_status = {"status": "healthy", "message": "API is running"}
        kv_status = await self._check_kv_status()
        notification_status = self._check_notification_config()

        all_healthy = all(s.get("status") == "healthy" for s in [api_status, kv_status, notification_status])
        response_time_ms = int((time.time() - start_time) * 1000)

        return HealthCheckResponse(
            status="healthy" if all_healthy else "degraded",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=settings.ENVIRONMENT,
            version=settings.APP_VERSION,
            services={
                "api": api_status,
                "kv_store": kv_status,
                "notification": notification_status,
            },
            response_time_ms=response_time_ms,
        )

    async def check_kv_store(self) -> ServiceStatusResponse:
        start_time = time.time()
        status_data = await self._check_kv_status()
        response_time_ms = int((time.time() - start_time) * 1000)

        return ServiceStatusResponse(
            service_name="kv_store",
            endpoint=self.kv_client.namespace_url,
            status=status_data.get("status", "unknown"),
            message=status_data.get("message", ""),
            response_time_ms=response_time_ms,
            details={
                "namespace_id": self.kv_client.namespace_id,
                "last_check": datetime.now(timezone.utc).isoformat(),
            },
        )

    async def _check_kv_status(self) -> Dict[str, Any]:
        missing = settings.missing_credentials()
        if missing:
            return {
                "status": "unhealthy",
                "message": f"KV credentials not configured: {', '.join(missing)}",
            }

        try:
            result = await self.kv_client.check_namespace()
            return {
                "status": "healthy",
                "message": "KV namespace is reachable",
                "namespace_id": result["namespace_id"],
            }
        except TransportError as e:
            logger.warning(f"KV namespace check failed: {e.message}")
            return {
                "status": "unhealthy",
                "message": f"KV namespace unreachable: {e.message}",
                "upstream_status": e.status,
            }

    def _check_notification_config(self) -> Dict[str, Any]:
        if not settings.NOTIFICATION_ENABLED:
            return {"status": "healthy", "message": "Content notifications disabled"}
        if not settings.NOTIFICATION_API_URL:
            return {"status": "degraded", "message": "NOTIFICATION_API_URL not configured"}
        return {"status": "healthy", "message": "Content notifications enabled", "endpoint": settings.NOTIFICATION_API_URL}
