"""
Resumable Upload Client - Graph upload sessions.

Two phases per upload:
1. Create an upload session for ``drives/{drive}/items/{parent}:/{name}:``
   with conflict behavior "rename".
2. PUT the payload in fixed-size slices, strictly in byte order, each
   tagged with its Content-Range, until Graph returns the created item.

Every failure is captured into an UploadOutcome; nothing here raises for
network, authorization or storage errors.
"""

import asyncio
import logging
from datetime import date
from typing import Iterator, Optional, Tuple
from urllib.parse import quote

import httpx
from azure.core.exceptions import AzureError

from .config import SLICE_SIZE_UNIT
from .credentials import GraphClient, GraphRequestError
from .models import (
    SessionCreated,
    SessionFailed,
    SessionResult,
    UploadDestination,
    UploadOutcome,
)

logger = logging.getLogger(__name__)

CONFLICT_BEHAVIOR_KEY = "@microsoft.graph.conflictBehavior"

# Errors that end an upload without escaping the client
CAPTURED_ERRORS = (GraphRequestError, httpx.HTTPError, asyncio.TimeoutError, AzureError, ValueError)


def build_file_name(client_name: Optional[str], today: date, suffix: str = "BECReport") -> str:
    """
    Build the destination file name, e.g. ``Acme20240305BECReport.pdf``.

    The client name is used verbatim; a missing name leaves an empty prefix.
    """
    return f"{client_name or ''}{today:%Y%m%d}{suffix}.pdf"


def iter_slice_ranges(total: int, slice_size: int = SLICE_SIZE_UNIT) -> Iterator[Tuple[int, int]]:
    """Yield contiguous ``(start, end_exclusive)`` ranges covering ``total`` bytes."""
    if slice_size <= 0:
        raise ValueError("slice_size must be positive")
    start = 0
    while start < total:
        end = min(start + slice_size, total)
        yield start, end
        start = end


class ResumableUploadClient:
    """Uploads one payload per call through a Graph upload session."""

    def __init__(
        self,
        graph: GraphClient,
        slice_size: int = SLICE_SIZE_UNIT,
        timeout: Optional[float] = None,
    ):
        self.graph = graph
        self.slice_size = slice_size
        self.timeout = timeout

    def _describe(self, error: BaseException) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return f"Storage request timed out after {self.timeout}s"
        return str(error) or repr(error)

    async def _call(self, coro):
        return await asyncio.wait_for(coro, timeout=self.timeout)

    async def create_session(self, destination: UploadDestination) -> SessionResult:
        """Request an upload session; failures come back as SessionFailed."""
        path = (
            f"drives/{destination.drive_id}/items/{destination.parent_id}"
            f":/{quote(destination.file_name)}:/createUploadSession"
        )
        try:
            body = await self._call(
                self.graph.post_json(path, {CONFLICT_BEHAVIOR_KEY: "rename"})
            )
        except CAPTURED_ERRORS as e:
            logger.error(f"Upload session creation failed for {destination.file_name}: {e!r}")
            return SessionFailed(self._describe(e))

        upload_url = body.get("uploadUrl") if isinstance(body, dict) else None
        if not upload_url:
            return SessionFailed("Upload session response did not include an uploadUrl")

        logger.info(f"Upload session created for {destination.file_name}")
        return SessionCreated(upload_url=upload_url, expiration=body.get("expirationDateTime"))

    async def upload(self, destination: UploadDestination, data: bytes) -> UploadOutcome:
        """
        Upload ``data`` to ``destination``.

        Returns:
            UploadOutcome with the item's webUrl, or the captured error text
        """
        if not data:
            return UploadOutcome.failed("Cannot upload an empty file")

        session = await self.create_session(destination)
        if isinstance(session, SessionFailed):
            return UploadOutcome.failed(session.error)
        return await self._transfer(session, data)

    async def _transfer(self, session: SessionCreated, data: bytes) -> UploadOutcome:
        total = len(data)
        for start, end in iter_slice_ranges(total, self.slice_size):
            headers = {
                "Content-Length": str(end - start),
                "Content-Range": f"bytes {start}-{end - 1}/{total}",
            }
            try:
                response = await self._call(
                    self.graph.put_bytes(session.upload_url, data[start:end], headers)
                )
                if response.status_code in (200, 201):
                    item = response.json()
                    web_url = item.get("webUrl") if isinstance(item, dict) else None
                    if not web_url:
                        return UploadOutcome.failed("Upload completed without a web URL")
                    logger.info(f"Upload completed ({total} bytes)")
                    return UploadOutcome.succeeded(web_url)
            except CAPTURED_ERRORS as e:
                logger.error(f"Slice {start}-{end - 1}/{total} failed: {e!r}")
                await self._discard(session)
                return UploadOutcome.failed(self._describe(e))

            logger.debug(f"Slice {start}-{end - 1}/{total} accepted")

        await self._discard(session)
        return UploadOutcome.failed("Storage service did not confirm the upload after the final slice")

    async def _discard(self, session: SessionCreated) -> None:
        """Best-effort cancel of an upload session that can no longer complete."""
        try:
            await self._call(self.graph.delete(session.upload_url))
        except CAPTURED_ERRORS as e:
            logger.warning(f"Could not cancel upload session: {e!r}")
