import asyncio
import logging
from typing import Any, Dict, Optional, Set

from src.shared.domain.models.device_models import Device
from src.shared.infra.external.dot.dot_client import DotTextClient

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Best-effort push of changed device content to the display.

    Sends run as detached tasks; the request that triggered them never waits on
    or sees their outcome.
    """

    def __init__(self, text_client: Optional[DotTextClient] = None, enabled: bool = True):
        self.text_client = text_client
        self.enabled = enabled and text_client is not None
        self._pending: Set[asyncio.Task] = set()

    def notify_content_update(self, device: Device) -> Optional[asyncio.Task]:
        if not self.enabled:
            logger.debug(f"Notifications disabled, skipping device {device.device_id}")
            return None

        payload = self._build_payload(device)
        task = asyncio.create_task(self._send_notification(device.owner_key, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send_notification(self, api_key: str, payload: Dict[str, Any]) -> bool:
        try:
            status = await self.text_client.send_text(api_key, payload)
            logger.info(f"Content notification delivered for device {payload['deviceId']} (status {status})")
            return True
        except Exception as e:
            logger.warning(f"Content notification failed for device {payload['deviceId']}: {e}")
            return False

    def _build_payload(self, device: Device) -> Dict[str, Any]:
        content = device.content
        payload: Dict[str, Any] = {"deviceId": device.device_id}
        if content.title is not None:
            payload["title"] = content.title
        if content.message is not None:
            payload["message"] = content.message
        payload["signature"] = content.signature or ""
        payload["link"] = content.link or ""
        return payload

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight notifications to settle."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        if self.text_client:
            await self.text_client.close()
