"""
SVG attachment upload with a reachability gate.

The storage behind the upload endpoint is eventually consistent: a freshly
uploaded SVG can 404 for a moment. ``upload()`` only returns once a HEAD on
the stored file succeeds, so a message never references an attachment that
recipients cannot fetch yet.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx
from pydantic import ValidationError

from hakushi_chat.errors import AttachmentNotReachableError, UploadFailedError
from hakushi_chat.models.message import AttachmentRef
from hakushi_chat.transport.http import HttpClient

UPLOAD_PATH = "/api/svg/upload"
SVG_CONTENT_TYPE = "image/svg+xml"
ATTACHMENTS_KEY = "svgs"
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BASE_DELAY_S = 0.4

logger = logging.getLogger(__name__)


def resolve_url(path: str, base_url: str) -> str:
    """Absolute URL for a stored attachment path.

    >>> resolve_url("/svgs/a.svg", "https://h")
    'https://h/svgs/a.svg'
    """
    if path.lower().startswith(("http://", "https://")):
        return path
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY_S) -> float:
    """Delay after the 1-based ``attempt``: 0.4, 0.8, 1.6, 3.2 ..."""
    return base_delay * (2 ** (attempt - 1))


class AttachmentUploader:
    def __init__(
        self,
        http: HttpClient,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY_S,
        check: Optional[Callable[[str], Awaitable[bool]]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._http = http
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._check = check or http.exists
        self._sleep = sleep

    async def upload(
        self,
        data: bytes,
        filename: str,
        room: str,
        author: str,
        message_id: str,
    ) -> AttachmentRef:
        """Upload one SVG and wait until it is reachable.

        Raises UploadFailedError for a rejected upload and
        AttachmentNotReachableError if the file never becomes visible.
        """
        logger.debug("Uploading %s (%d bytes) to room %s", filename, len(data), room)
        try:
            resp = await self._http.post_multipart(
                UPLOAD_PATH,
                fields={"room": room, "user": author, "messageId": message_id},
                files={ATTACHMENTS_KEY: (filename, data, SVG_CONTENT_TYPE)},
            )
        except httpx.HTTPError as e:
            raise UploadFailedError(f"Upload request failed: {e}")

        if resp.status_code != 200:
            raise UploadFailedError(
                f"HTTP {resp.status_code}: {resp.text[:200]}",
                details={"status": resp.status_code},
            )

        attachment = self._first_attachment(HttpClient.json_or_none(resp))
        await self.wait_until_reachable(attachment)
        logger.info("Uploaded %s as %s (%s)", filename, attachment.id, attachment.url)
        return attachment

    async def wait_until_reachable(self, attachment: AttachmentRef) -> None:
        url = resolve_url(attachment.url, self._http.base_url)
        for attempt in range(1, self._max_attempts + 1):
            try:
                if await self._check(url):
                    return
            except httpx.HTTPError as e:
                logger.debug("Reachability check %d for %s raised: %s", attempt, url, e)
            delay = backoff_delay(attempt, self._base_delay)
            logger.warning("Attachment %s not reachable yet (attempt %d/%d), waiting %.1fs",
                           attachment.id, attempt, self._max_attempts, delay)
            await self._sleep(delay)

        raise AttachmentNotReachableError(
            f"Attachment {attachment.id} not reachable after {self._max_attempts} attempts",
            details={"url": url},
        )

    @staticmethod
    def _first_attachment(body: object) -> AttachmentRef:
        items = body.get(ATTACHMENTS_KEY) if isinstance(body, dict) else None
        if not isinstance(items, list) or not items:
            raise UploadFailedError("Upload response contained no attachments")
        try:
            return AttachmentRef.model_validate(items[0])
        except ValidationError as e:
            raise UploadFailedError(f"Malformed attachment descriptor: {e.errors()[0]['msg']}")
