from __future__ import annotations

from typing import Any

import httpx


class BoardClient:
    """Calls the board API's maintenance endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        admin_api_key: str | None,
        api_key_header: str = "X-API-Key",
        moderation_secret: str | None = None,
        timeout_seconds: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.admin_headers = {api_key_header: admin_api_key} if admin_api_key else {}
        self.moderation_headers = {"Authorization": f"Bearer {moderation_secret}"} if moderation_secret else {}
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def run_moderation(self) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.post(f"{self.base_url}/moderation/run", headers=self.moderation_headers)
            response.raise_for_status()
            return response.json()

    async def expire_listings(self) -> int:
        if not self.admin_headers:
            raise RuntimeError("admin API key is required to expire listings")
        async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
            response = await client.post(f"{self.base_url}/admin/listings/expire", headers=self.admin_headers)
            response.raise_for_status()
            payload = response.json()
            return int(payload.get("count", 0))
