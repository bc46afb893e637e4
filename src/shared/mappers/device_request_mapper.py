import json
from typing import Any, Dict, Optional, Union

from src.shared.domain.exception.device_exceptions import DeviceValidationError
from src.shared.domain.models.device_models import (
    CreateDeviceRequest,
    QueryDevicesByOwner,
    UpdateDeviceContentRequest,
    UpdateDeviceRequest,
)
from src.shared.utils.validators import parse_model


def decode_json_body(raw: bytes) -> Dict[str, Any]:
    try:
        body = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise DeviceValidationError(
            "请求体不是有效的JSON", details=[{"path": "", "message": f"invalid JSON body: {e}"}]
        ) from e

    if not isinstance(body, dict):
        raise DeviceValidationError(details=[{"path": "", "message": "request body must be a JSON object"}])
    return body


def parse_create_request(body: Dict[str, Any]) -> CreateDeviceRequest:
    return parse_model(CreateDeviceRequest, body)


def classify_update_request(body: Dict[str, Any]) -> Union[UpdateDeviceContentRequest, UpdateDeviceRequest]:
    """
    Decide the PUT shape from the discriminating field.

    ``content`` marks a content-only update and is checked first; ``value`` marks
    a full update. A body with neither is rejected.
    """
    if "content" in body:
        return parse_model(UpdateDeviceContentRequest, body)
    if "value" in body:
        return parse_model(UpdateDeviceRequest, body)
    raise DeviceValidationError(
        details=[{"path": "", "message": "request body must contain either 'content' or 'value'"}]
    )


def parse_owner_query(owner: Optional[str], owner_key: Optional[str]) -> QueryDevicesByOwner:
    return parse_model(QueryDevicesByOwner, {"owner": owner, "ownerKey": owner_key})
