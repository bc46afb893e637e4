import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from src.shared.domain.exception.device_exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)


class DotTextClient:
    """Client for the Dot text-push endpoint that refreshes a display's text."""

    def __init__(self, endpoint: str, timeout: int = 10, session: Optional[aiohttp.ClientSession] = None):
        if not endpoint:
            raise ValueError("endpoint is required")

        self.endpoint = endpoint
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=5)
        self._session = session
        self._owns_session = session is None

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send_text(self, api_key: str, payload: Dict[str, Any]) -> int:
        """
        POST a text payload on behalf of the device owner.

        Args:
            api_key: Owner credential, sent as a bearer token
            payload: ``deviceId``, ``title``, ``message``, ``signature`` and ``link``

        Returns:
            int: HTTP status of the accepted request

        Raises:
            NotificationDeliveryError: network failure or non-2xx status
        """
        session = await self.get_session()
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

        try:
            async with session.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout) as response:
                logger.info(f"Text API answered {response.status} for device {payload.get('deviceId')}")
                if response.status >= 300:
                    error_text = await response.text()
                    raise NotificationDeliveryError(
                        f"HTTP {response.status} {response.reason}: {error_text}", status=response.status
                    )
                return response.status
        except asyncio.TimeoutError as e:
            raise NotificationDeliveryError("Timeout calling the text API") from e
        except aiohttp.ClientError as e:
            raise NotificationDeliveryError(f"Connection error calling the text API: {e}") from e
