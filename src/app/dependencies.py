"""FastAPI dependencies.

Clients are built once in the application lifespan and kept on ``app.state``;
the repository is assembled per request from them. Tests replace
``get_device_repository`` through ``app.dependency_overrides``.
"""

from fastapi import Depends, Request

from src.app.config import settings
from src.modules.device_management.repo.device_repository import DeviceRepository
from src.modules.device_management.services.notification_service import NotificationService
from src.modules.status.usecase.health_check_usecase import HealthCheckUseCase
from src.shared.infra.external.cloudflare.kv_client import KVClient


def get_kv_client(request: Request) -> KVClient:
    return request.app.state.kv_client


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_device_repository(
    kv_client: KVClient = Depends(get_kv_client),
    notification_service: NotificationService = Depends(get_notification_service),
) -> DeviceRepository:
    return DeviceRepository(kv_client, notification_service, scan_concurrency=settings.KV_SCAN_CONCURRENCY)


def get_health_check_usecase(kv_client: KVClient = Depends(get_kv_client)) -> HealthCheckUseCase:
    return HealthCheckUseCase(kv_client)
