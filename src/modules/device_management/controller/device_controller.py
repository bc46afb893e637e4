import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from src.app.config import settings
from src.app.dependencies import get_device_repository
from src.modules.device_management.repo.device_repository import DeviceRepository
from src.shared.domain.exception.device_exceptions import DeviceValidationError
from src.shared.domain.models.device_models import UpdateDeviceContentRequest
from src.shared.mappers.device_request_mapper import (
    classify_update_request,
    decode_json_body,
    parse_create_request,
    parse_owner_query,
)
from src.shared.mappers.response_mapper import (
    create_success_response,
    device_to_response,
    devices_to_response,
    handle_error,
)

logger = logging.getLogger(__name__)

device_router = APIRouter(prefix=settings.API_PREFIX, tags=["Devices"])


@device_router.get("")
async def get_devices(
    key: Optional[str] = Query(None, description="Device id to fetch"),
    owner: Optional[str] = Query(None, description="Owner account label"),
    owner_key: Optional[str] = Query(None, alias="ownerKey", description="Owner credential"),
    repository: DeviceRepository = Depends(get_device_repository),
):
    """List every device, the devices of one owner, or a single device."""
    try:
        if owner and owner_key:
            query = parse_owner_query(owner, owner_key)
            devices = await repository.list_by_owner(query.owner, query.owner_key)
            return create_success_response(
                {"owner": query.owner, "devices": devices_to_response(devices), "count": len(devices)},
                "devices_by_owner",
            )

        if not key:
            devices = await repository.list_all()
            return create_success_response(
                {"devices": devices_to_response(devices), "count": len(devices)}, "all_devices"
            )

        device = await repository.get_one(key)
        return create_success_response({"key": key, "device": device_to_response(device)}, "device_details")
    except Exception as e:
        return handle_error(e, "获取设备数据")


@device_router.post("")
async def create_device(request: Request, repository: DeviceRepository = Depends(get_device_repository)):
    """Create a device. Fails with 409 when the key already holds data."""
    try:
        create_request = parse_create_request(decode_json_body(await request.body()))
        device = await repository.create(
            create_request.key, create_request.value, create_request.metadata, create_request.ttl
        )
        return create_success_response(
            {"message": "设备创建成功", "key": create_request.key, "device": device_to_response(device)},
            "device_created",
        )
    except Exception as e:
        return handle_error(e, "创建设备")


@device_router.put("")
async def update_device(request: Request, repository: DeviceRepository = Depends(get_device_repository)):
    """Content-only update when the body carries ``content``, full update when it carries ``value``."""
    try:
        update_request = classify_update_request(decode_json_body(await request.body()))

        if isinstance(update_request, UpdateDeviceContentRequest):
            device = await repository.content_update(update_request.key, update_request.content)
        else:
            device = await repository.full_update(
                update_request.key, update_request.value, update_request.metadata, update_request.ttl
            )

        return create_success_response(
            {"message": "设备更新成功", "key": update_request.key, "device": device_to_response(device)},
            "device_updated",
        )
    except Exception as e:
        return handle_error(e, "更新设备")


@device_router.delete("")
async def delete_devices(
    key: Optional[str] = Query(None),
    owner: Optional[str] = Query(None),
    owner_key: Optional[str] = Query(None, alias="ownerKey"),
    delete_all: Optional[str] = Query(None, alias="deleteAll"),
    repository: DeviceRepository = Depends(get_device_repository),
):
    """Delete one device by key, or every device of an owner with ``deleteAll=true``."""
    try:
        if delete_all == "true" and owner and owner_key:
            query = parse_owner_query(owner, owner_key)
            deleted_keys = await repository.delete_by_owner(query.owner, query.owner_key)
            return create_success_response(
                {
                    "message": f"成功删除用户 {query.owner} 的 {len(deleted_keys)} 个设备",
                    "owner": query.owner,
                    "deletedKeys": deleted_keys,
                    "count": len(deleted_keys),
                },
                "bulk_delete_completed",
            )

        if not key:
            raise DeviceValidationError("缺少必需的参数: key")

        await repository.delete_one(key)
        return create_success_response({"message": "设备删除成功", "key": key}, "device_deleted")
    except Exception as e:
        return handle_error(e, "删除设备")
