import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional

from src.modules.device_management.services.notification_service import NotificationService
from src.shared.domain.exception.device_exceptions import (
    DeviceConflictError,
    DeviceNotFoundError,
    MalformedRecordError,
    TransportError,
)
from src.shared.domain.models.device_models import Device, DeviceContent
from src.shared.infra.external.cloudflare.kv_client import KVClient
from src.shared.utils.validators import (
    apply_content_update,
    merge_device_update,
    normalize_device_data,
    parse_device_record,
    validate_device_ownership,
    validate_ttl,
)

logger = logging.getLogger(__name__)


class DeviceRepository:
    """
    Device records in the KV namespace, one JSON document per ``deviceId``.

    The namespace has no secondary index, so listing and owner queries scan
    every key. Scans skip unreadable records; single-key operations raise.
    """

    def __init__(
        self,
        kv_client: KVClient,
        notification_service: Optional[NotificationService] = None,
        scan_concurrency: int = 10,
    ):
        self.kv_client = kv_client
        self.notification_service = notification_service
        self.scan_concurrency = max(1, scan_concurrency)

    async def _read_value(self, key: str) -> Optional[bytes]:
        """Stored bytes for ``key``; an absent key and an empty value both read as None."""
        raw = await self.kv_client.get(key)
        if not raw:
            return None
        return raw

    async def _bounded(self, coroutines: List[Awaitable[Any]]) -> List[Any]:
        semaphore = asyncio.Semaphore(self.scan_concurrency)

        async def run(coroutine):
            async with semaphore:
                return await coroutine

        return await asyncio.gather(*(run(c) for c in coroutines))

    async def _load_scanned(self, key: str) -> Optional[Device]:
        try:
            raw = await self._read_value(key)
            if raw is None:
                return None
            return parse_device_record(key, raw)
        except MalformedRecordError as e:
            logger.warning(f"Skipping invalid device data under key {key}: {e.reason}")
        except TransportError as e:
            logger.warning(f"Skipping unreadable key {key}: {e.message}")
        return None

    async def _scan(self) -> List[tuple]:
        keys = await self.kv_client.list_keys()
        devices = await self._bounded([self._load_scanned(key) for key in keys])
        return [(key, device) for key, device in zip(keys, devices) if device is not None]

    async def list_all(self) -> List[Device]:
        devices = [device for _, device in await self._scan()]
        logger.info(f"Listed {len(devices)} valid devices")
        return devices

    async def list_by_owner(self, owner: str, owner_key: str) -> List[Device]:
        devices = [device for _, device in await self._scan() if validate_device_ownership(device, owner, owner_key)]
        logger.info(f"Found {len(devices)} devices for owner {owner}")
        return devices

    async def get_one(self, key: str) -> Device:
        raw = await self._read_value(key)
        if raw is None:
            logger.warning(f"Device not found: {key}")
            raise DeviceNotFoundError(key, "未找到指定的设备")
        return parse_device_record(key, raw)

    async def _write(
        self, key: str, device: Device, metadata: Optional[Dict[str, Any]] = None, ttl: Optional[int] = None
    ) -> None:
        await self.kv_client.put(key, device.model_dump_json(by_alias=True, exclude_none=True), ttl, metadata)

    async def create(
        self, key: str, value: Device, metadata: Optional[Dict[str, Any]] = None, ttl: Optional[int] = None
    ) -> Device:
        validate_ttl(ttl)
        if await self._read_value(key) is not None:
            logger.info(f"Device {key} already exists")
            raise DeviceConflictError(key)

        device = normalize_device_data(value)
        await self._write(key, device, metadata, ttl)
        logger.info(f"Device {key} created")
        return device

    async def full_update(
        self, key: str, value: Device, metadata: Optional[Dict[str, Any]] = None, ttl: Optional[int] = None
    ) -> Device:
        validate_ttl(ttl)
        existing = None
        raw = await self._read_value(key)
        if raw is not None:
            try:
                existing = parse_device_record(key, raw)
            except MalformedRecordError as e:
                logger.warning(f"Stored data for {key} is invalid ({e.reason}), replacing it")

        device = merge_device_update(existing, value)
        await self._write(key, device, metadata, ttl)
        logger.info(f"Device {key} {'updated' if existing else 'created by update'}")

        if existing is None or existing.content != device.content:
            self._notify(device)
        return device

    async def content_update(self, key: str, content: DeviceContent) -> Device:
        raw = await self._read_value(key)
        if raw is None:
            logger.warning(f"Content update for missing device {key}")
            raise DeviceNotFoundError(key)

        existing = parse_device_record(key, raw)
        device = apply_content_update(existing, content)
        await self._write(key, device)
        logger.info(f"Content of device {key} updated")

        self._notify(device)
        return device

    async def delete_one(self, key: str) -> None:
        if await self._read_value(key) is None:
            logger.warning(f"Attempt to delete missing device {key}")
            raise DeviceNotFoundError(key)

        await self.kv_client.delete(key)
        logger.info(f"Device {key} deleted")

    async def _delete_scanned(self, key: str) -> Optional[str]:
        try:
            await self.kv_client.delete(key)
            return key
        except TransportError as e:
            logger.warning(f"Failed to delete device {key}: {e.message}")
            return None

    async def delete_by_owner(self, owner: str, owner_key: str) -> List[str]:
        matches = [key for key, device in await self._scan() if validate_device_ownership(device, owner, owner_key)]
        results = await self._bounded([self._delete_scanned(key) for key in matches])
        deleted = [key for key in results if key is not None]
        logger.info(f"Deleted {len(deleted)} of {len(matches)} devices for owner {owner}")
        return deleted

    def _notify(self, device: Device) -> None:
        if self.notification_service is None:
            return
        try:
            self.notification_service.notify_content_update(device)
        except Exception as e:
            logger.warning(f"Could not schedule notification for device {device.device_id}: {e}")
