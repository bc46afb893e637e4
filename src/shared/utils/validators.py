import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from src.shared.domain.exception.device_exceptions import DeviceValidationError, MalformedRecordError
from src.shared.domain.models.device_models import MAX_TTL_SECONDS, MIN_TTL_SECONDS, Device, DeviceContent
from src.shared.utils.time_utils import next_timestamp, utc_now_iso


def format_validation_errors(error: ValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``{path, message}`` pairs."""
    return [
        {"path": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
        for err in error.errors()
    ]


def parse_model(model: type, raw: Any) -> BaseModel:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise DeviceValidationError(details=format_validation_errors(e)) from e


def validate_device(raw: Any) -> Device:
    return parse_model(Device, raw)


def parse_device_record(key: str, raw: Optional[bytes]) -> Device:
    """
    Decode a stored value into a Device.

    Raises:
        MalformedRecordError: the bytes are not UTF-8 JSON or fail the schema
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise MalformedRecordError(key, reason=f"invalid JSON: {e}") from e

    try:
        return validate_device(data)
    except DeviceValidationError as e:
        raise MalformedRecordError(key, details=e.details, reason="schema mismatch") from e


def validate_ttl(ttl: Optional[int]) -> Optional[int]:
    if ttl is None:
        return None
    if isinstance(ttl, bool) or not isinstance(ttl, int) or not MIN_TTL_SECONDS <= ttl <= MAX_TTL_SECONDS:
        raise DeviceValidationError(
            details=[{"path": "ttl", "message": f"ttl must be between {MIN_TTL_SECONDS} and {MAX_TTL_SECONDS} seconds"}]
        )
    return ttl


def normalize_device_data(device: Device, now: Optional[str] = None) -> Device:
    """Fill ``createdAt`` when absent and always restamp ``updatedAt``. Does not validate."""
    stamp = now or utc_now_iso()
    return device.model_copy(update={"created_at": device.created_at or stamp, "updated_at": stamp})


def merge_device_update(existing: Optional[Device], incoming: Device, now: Optional[str] = None) -> Device:
    """
    Merge a full update onto the stored record.

    The stored ``createdAt`` wins, every other field comes from ``incoming`` and
    ``updatedAt`` is always server-set. Without a stored record the caller's
    ``createdAt`` is kept.
    """
    stamp = now or utc_now_iso()
    if existing is None:
        return normalize_device_data(incoming, stamp)

    return incoming.model_copy(
        update={
            "created_at": existing.created_at or incoming.created_at or stamp,
            "updated_at": next_timestamp(existing.updated_at, stamp),
        }
    )


def apply_content_update(existing: Device, content: DeviceContent, now: Optional[str] = None) -> Device:
    stamp = now or utc_now_iso()
    return existing.model_copy(
        update={
            "content": content,
            "created_at": existing.created_at or stamp,
            "updated_at": next_timestamp(existing.updated_at, stamp),
        }
    )


def validate_device_ownership(device: Device, owner: str, owner_key: str) -> bool:
    return device.is_owned_by(owner, owner_key)
