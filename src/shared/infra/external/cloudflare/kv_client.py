import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote

import aiohttp

from src.shared.domain.exception.device_exceptions import KVTransportError

logger = logging.getLogger(__name__)


class KVClient:
    """
    Workers KV namespace reached through the Cloudflare REST API.

    Pure transport: values go in and out as bytes, no JSON parsing happens here.
    """

    def __init__(
        self,
        api_token: str,
        account_id: str,
        namespace_id: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        timeout: int = 30,
        page_size: int = 1000,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_token = api_token
        self.account_id = account_id
        self.namespace_id = namespace_id
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=10)
        self.page_size = page_size
        self.namespace_url = f"{self.base_url}/accounts/{account_id}/storage/kv/namespaces/{namespace_id}"
        self._session = session
        self._owns_session = session is None
        logger.info(f"Initializing KV client for namespace {namespace_id or '<unset>'}")

    @classmethod
    def from_settings(cls, settings) -> "KVClient":
        return cls(
            api_token=settings.CLOUDFLARE_API_TOKEN,
            account_id=settings.CLOUDFLARE_ACCOUNT_ID,
            namespace_id=settings.CLOUDFLARE_KV_NAMESPACE_ID,
            base_url=settings.CLOUDFLARE_API_BASE_URL,
            timeout=settings.KV_REQUEST_TIMEOUT,
            page_size=settings.KV_LIST_PAGE_SIZE,
        )

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_token}"}

    def _value_url(self, key: str) -> str:
        return f"{self.namespace_url}/values/{quote(key, safe='')}"

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        text = await response.text()
        try:
            body = json.loads(text)
        except ValueError:
            return f"HTTP {response.status}: {text}"
        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            messages = "; ".join(f"{err.get('code')}: {err.get('message')}" for err in errors if isinstance(err, dict))
            return f"HTTP {response.status}: {messages}"
        return f"HTTP {response.status}: {text}"

    async def get(self, key: str) -> Optional[bytes]:
        """Raw value stored under ``key``, or None when the key does not exist."""
        session = await self.get_session()
        try:
            async with session.get(self._value_url(key), headers=self._headers, timeout=self.timeout) as response:
                if response.status == 404:
                    return None
                if response.status != 200:
                    message = await self._error_message(response)
                    logger.error(f"KV get failed for key {key}: {message}")
                    raise KVTransportError(message, status=response.status)
                return await response.read()
        except asyncio.TimeoutError as e:
            raise KVTransportError(f"Timeout reading key {key}") from e
        except aiohttp.ClientError as e:
            raise KVTransportError(f"Connection error reading key {key}: {e}") from e

    async def put(
        self,
        key: str,
        value: Union[str, bytes],
        ttl_seconds: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        session = await self.get_session()
        params = {"expiration_ttl": str(ttl_seconds)} if ttl_seconds else None
        payload = value.encode("utf-8") if isinstance(value, str) else value

        if metadata:
            data: Any = aiohttp.FormData()
            data.add_field("value", payload, content_type="application/octet-stream")
            data.add_field("metadata", json.dumps(metadata), content_type="application/json")
            headers = self._headers
        else:
            data = payload
            headers = {**self._headers, "Content-Type": "text/plain"}

        try:
            async with session.put(
                self._value_url(key), data=data, params=params, headers=headers, timeout=self.timeout
            ) as response:
                if response.status not in (200, 201):
                    message = await self._error_message(response)
                    logger.error(f"KV put failed for key {key}: {message}")
                    raise KVTransportError(message, status=response.status)
        except asyncio.TimeoutError as e:
            raise KVTransportError(f"Timeout writing key {key}") from e
        except aiohttp.ClientError as e:
            raise KVTransportError(f"Connection error writing key {key}: {e}") from e

        logger.info(f"Key {key} written")

    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is not an error."""
        session = await self.get_session()
        try:
            async with session.delete(self._value_url(key), headers=self._headers, timeout=self.timeout) as response:
                if response.status == 404:
                    logger.debug(f"Key {key} already absent")
                    return
                if response.status != 200:
                    message = await self._error_message(response)
                    logger.error(f"KV delete failed for key {key}: {message}")
                    raise KVTransportError(message, status=response.status)
        except asyncio.TimeoutError as e:
            raise KVTransportError(f"Timeout deleting key {key}") from e
        except aiohttp.ClientError as e:
            raise KVTransportError(f"Connection error deleting key {key}: {e}") from e

        logger.info(f"Key {key} deleted")

    async def _list_page(self, cursor: Optional[str] = None, limit: Optional[int] = None, prefix: Optional[str] = None):
        session = await self.get_session()
        params = {"limit": str(limit or self.page_size)}
        if cursor:
            params["cursor"] = cursor
        if prefix:
            params["prefix"] = prefix

        try:
            async with session.get(
                f"{self.namespace_url}/keys", params=params, headers=self._headers, timeout=self.timeout
            ) as response:
                if response.status != 200:
                    message = await self._error_message(response)
                    logger.error(f"KV key listing failed: {message}")
                    raise KVTransportError(message, status=response.status)
                body = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise KVTransportError("Timeout listing keys") from e
        except aiohttp.ClientError as e:
            raise KVTransportError(f"Connection error listing keys: {e}") from e

        if not isinstance(body, dict) or not body.get("success", True):
            raise KVTransportError(f"Unexpected key listing response: {body}")
        return body

    async def list_keys(self, prefix: Optional[str] = None) -> List[str]:
        """
        Every key name currently listed in the namespace.

        Follows the listing cursor until it is exhausted. The listing is
        eventually consistent: recent writes may be missing and recent deletes
        may still appear.
        """
        keys: List[str] = []
        cursor = None
        while True:
            body = await self._list_page(cursor=cursor, prefix=prefix)
            keys.extend(item["name"] for item in body.get("result") or [] if item.get("name"))
            cursor = (body.get("result_info") or {}).get("cursor")
            if not cursor:
                break

        logger.info(f"Listing returned {len(keys)} keys")
        return keys

    async def check_namespace(self) -> Dict[str, Any]:
        """Smallest listing page the API accepts, used to prove the namespace is reachable."""
        body = await self._list_page(limit=10)
        return {
            "namespace_id": self.namespace_id,
            "reachable": True,
            "sample_size": len(body.get("result") or []),
        }
