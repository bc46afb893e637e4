import logging
from typing import Any, Dict, Iterable

from fastapi.responses import JSONResponse

from src.shared.domain.exception.device_exceptions import DeviceError, DeviceValidationError
from src.shared.domain.models.device_models import Device
from src.shared.utils.time_utils import utc_now_iso

logger = logging.getLogger(__name__)


def device_to_response(device: Device) -> Dict[str, Any]:
    return device.to_record()


def devices_to_response(devices: Iterable[Device]) -> list:
    return [device.to_record() for device in devices]


def create_success_response(data: Dict[str, Any], response_type: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "type": response_type, "timestamp": utc_now_iso(), **data},
    )


def create_error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def handle_error(exc: Exception, operation: str) -> JSONResponse:
    """
    Render any failure of ``operation`` as the error envelope.

    Validation, not-found and conflict errors keep their own message and status;
    everything else is a 500 naming the operation.
    """
    if isinstance(exc, DeviceValidationError):
        logger.warning(f"{operation}: validation failed: {exc.message} {exc.details}")
        return create_error_response(exc.status_code, exc.message, exc.details or None)

    if isinstance(exc, DeviceError) and exc.status_code < 500:
        logger.info(f"{operation}: {exc.message}")
        return create_error_response(exc.status_code, exc.message)

    logger.error(f"{operation} failed: {exc}", exc_info=exc)
    return create_error_response(500, f"{operation}失败", str(exc) or type(exc).__name__)
