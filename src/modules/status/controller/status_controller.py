import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from src.app.config import settings
from src.app.dependencies import get_health_check_usecase
from src.modules.status.usecase.health_check_usecase import HealthCheckUseCase
from src.shared.domain.models.status_models import HealthCheckResponse, ServiceStatusResponse

logger = logging.getLogger(__name__)

status_router = APIRouter(prefix="/status", tags=["System Status"])


@status_router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    health_check_usecase: HealthCheckUseCase = Depends(get_health_check_usecase),
):
    try:
        return await health_check_usecase.check_system_health()
    except Exception as e:
        logger.exception(f"System health check failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"System health check failed: {str(e)}")


@status_router.get("/kv-store", response_model=ServiceStatusResponse)
async def check_kv_store(
    health_check_usecase: HealthCheckUseCase = Depends(get_health_check_usecase),
):
    try:
        return await health_check_usecase.check_kv_store()
    except Exception as e:
        logger.exception(f"KV store check failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"KV store check failed: {str(e)}")


@status_router.get("/config", response_model=Dict[str, Any])
async def get_api_config():
    return {**settings.get_public_config(), "timestamp": datetime.now(timezone.utc).isoformat()}
