"""
HTTP client for the chat backend's REST side (SVG upload, reachability checks).
"""

from typing import Any, Optional

import httpx

from hakushi_chat.settings import DEFAULT_API_URL


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": "hakushi-chat/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def post_multipart(
        self,
        path: str,
        fields: dict[str, str],
        files: dict[str, tuple[str, bytes, str]],
    ) -> httpx.Response:
        """POST a multipart/form-data body. Status handling is left to the caller."""
        return await self._client.post(path, data=fields, files=files)

    async def exists(self, url: str) -> bool:
        """HEAD ``url`` (absolute or base-relative); True on any 2xx."""
        resp = await self._client.head(url)
        return resp.is_success

    @staticmethod
    def json_or_none(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    async def close(self) -> None:
        await self._client.aclose()
