import logging
from typing import Any, Dict, Optional

import httpx

from dota_cup.core.config import settings
from dota_cup.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15.0


class OpenDotaService:
    """Thin async client for the public OpenDota API."""

    def __init__(
        self,
        base_url: str = settings.OPENDOTA_BASE_URL,
        api_key: str = settings.OPENDOTA_API_KEY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=REQUEST_TIMEOUT,
            transport=self.transport,
        )

    async def _request(self, method: str, path: str) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, path)
        except httpx.HTTPError as e:
            logger.error("OpenDota %s %s failed: %s", method, path, e)
            raise UpstreamError("OpenDota", str(e))

    async def get_player(self, account_id: str) -> Optional[Dict[str, Any]]:
        """Returns the player document, or None when OpenDota has no such player."""
        response = await self._request("GET", f"/players/{account_id}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UpstreamError("OpenDota", f"player lookup returned {response.status_code}", response.status_code)
        data = response.json()
        # OpenDota answers 200 with an empty profile for unknown accounts
        if not data or not data.get("profile"):
            return None
        return data

    async def get_win_loss(self, account_id: str) -> Dict[str, int]:
        response = await self._request("GET", f"/players/{account_id}/wl")
        if response.status_code != 200:
            raise UpstreamError("OpenDota", f"win/loss lookup returned {response.status_code}", response.status_code)
        data = response.json() or {}
        return {"win": int(data.get("win") or 0), "lose": int(data.get("lose") or 0)}

    async def refresh_player(self, account_id: str) -> bool:
        response = await self._request("POST", f"/players/{account_id}/refresh")
        return response.status_code == 200

    async def is_available(self) -> bool:
        try:
            response = await self._request("GET", "/status")
        except UpstreamError:
            return False
        return response.status_code == 200
