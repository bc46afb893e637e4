import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import Response

from src.app.config import settings
from src.modules.device_management.controller.device_controller import device_router
from src.modules.device_management.services.notification_service import NotificationService
from src.modules.status.controller.status_controller import status_router
from src.shared.infra.external.cloudflare.kv_client import KVClient
from src.shared.infra.external.dot.dot_client import DotTextClient
from src.shared.mappers.response_mapper import handle_error

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    handlers=[logging.StreamHandler()],
)
logger = logging.getLogger(__name__)


def build_notification_service() -> NotificationService:
    if not settings.NOTIFICATION_ENABLED:
        logger.info("Content notifications disabled")
        return NotificationService(None, enabled=False)
    if not settings.NOTIFICATION_API_URL:
        logger.warning("NOTIFICATION_API_URL not configured. Content notifications disabled.")
        return NotificationService(None, enabled=False)
    return NotificationService(DotTextClient(settings.NOTIFICATION_API_URL, timeout=settings.NOTIFICATION_TIMEOUT))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Dot device console API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    missing = settings.missing_credentials()
    if missing:
        logger.warning(f"KV credentials not configured: {', '.join(missing)}. Store requests will fail.")

    app.state.kv_client = KVClient.from_settings(settings)
    app.state.notification_service = build_notification_service()
    yield
    logger.info("Shutting down Dot device console API")
    await app.state.notification_service.close()
    await app.state.kv_client.close()


app = FastAPI(
    title="Dot Device Console API",
    description="Device records for Dot e-paper displays, stored in Cloudflare KV",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if not settings.is_production() else None,
    redoc_url="/redoc" if not settings.is_production() else None,
)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": settings.CORS_ORIGINS,
    "Access-Control-Allow-Methods": ", ".join(settings.CORS_METHODS),
    "Access-Control-Allow-Headers": ", ".join(settings.CORS_HEADERS),
    "Access-Control-Max-Age": str(settings.CORS_MAX_AGE),
}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception as exc:
        response = handle_error(exc, "处理请求")
    process_time = time.time() - start_time

    response.headers["X-Process-Time"] = str(process_time)
    response.headers.setdefault("Access-Control-Allow-Origin", settings.CORS_ORIGINS)
    logger.info(
        f"{request.method} {request.url.path} - Status: {response.status_code} - Time: {process_time:.3f}s"
    )
    return response


@app.options("/{full_path:path}", include_in_schema=False)
async def preflight(full_path: str):
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


app.include_router(device_router)
app.include_router(status_router)


@app.get("/", tags=["Root"])
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "devices": settings.API_PREFIX,
            "health": "/health-check",
            "status": "/status/health",
            "docs": "/docs" if not settings.is_production() else "disabled",
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health-check", tags=["Health Check"])
async def health_check():
    start_time = time.time()
    response_time = round((time.time() - start_time) * 1000, 2)
    return {"status": "healthy", "response_time_ms": response_time}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("src.app.main:app", host="0.0.0.0", port=8000, reload=True)
