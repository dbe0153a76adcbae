"""
Request Orchestrator - render, buffer, upload, respond.

One call to ``handle`` walks a single request through
Received -> Rendering -> Buffering -> Uploading -> Responding. Nothing
is retained between requests.
"""

import base64
import logging
from datetime import date
from typing import Callable, Optional

import httpx
from azure.core.exceptions import AzureError

from .config import ServiceSettings
from .credentials import CredentialSource, GraphClient
from .models import ApiResponse, RenderRequest, UploadDestination, UploadOutcome
from .renderer import RenderError, RendererClient
from .upload import ResumableUploadClient, build_file_name

logger = logging.getLogger(__name__)


def compose_response(pdf_bytes: bytes, outcome: UploadOutcome) -> ApiResponse:
    """
    Build the response payload.

    ``success`` is true only for a non-empty PDF AND a successful upload
    that returned a URL. On failure base64/uploadUrl stay null and
    uploadErrors explains why.
    """
    if pdf_bytes and outcome.success and outcome.location_or_error:
        return ApiResponse(
            base64=base64.b64encode(pdf_bytes).decode("ascii"),
            success=True,
            uploadUrl=outcome.location_or_error,
        )

    errors = []
    if not pdf_bytes:
        errors.append("PDF rendering produced no bytes")
    if not outcome.success:
        errors.append(outcome.location_or_error or "Upload failed")
    elif not outcome.location_or_error:
        errors.append("Upload did not return a file URL")
    return ApiResponse(success=False, uploadErrors="; ".join(errors))


class ReportOrchestrator:
    """Handles one inbound render-and-upload request at a time, per call."""

    def __init__(
        self,
        renderer: RendererClient,
        credential_source: CredentialSource,
        settings: ServiceSettings,
        clock: Callable[[], date] = date.today,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.renderer = renderer
        self.credential_source = credential_source
        self.settings = settings
        self.clock = clock
        self.transport = transport

    async def handle(self, request: RenderRequest) -> ApiResponse:
        logger.info("Received Request for new Document")

        try:
            pdf_bytes = await self.renderer.render(request.html)
        except RenderError as e:
            logger.error(f"Conversion FAILED! Rendering error: {e}")
            return ApiResponse(success=False, uploadErrors=str(e))

        # The renderer hands back fully materialized bytes, safe to read twice
        logger.info(f"Buffered PDF ({len(pdf_bytes)} bytes)")

        logger.info("Starting File Upload")
        outcome = await self.upload(request.client_name, pdf_bytes)

        response = compose_response(pdf_bytes, outcome)
        if response.success:
            logger.info("Conversion Succeeded")
        else:
            logger.error("Conversion FAILED! See API Response")
        return response

    async def upload(self, client_name: Optional[str], pdf_bytes: bytes) -> UploadOutcome:
        """Upload the PDF under today's file name; never raises for storage errors."""
        destination = UploadDestination(
            drive_id=self.settings.drive_id,
            parent_id=self.settings.parent_id,
            file_name=build_file_name(client_name, self.clock(), self.settings.report_suffix),
        )

        try:
            credential = self.credential_source.build_credential()
        except (AzureError, ValueError) as e:
            logger.error(f"Could not build Graph credential: {e}")
            return UploadOutcome.failed(str(e))

        with credential:
            async with GraphClient(
                credential, self.settings.graph_base_url, transport=self.transport
            ) as graph:
                uploader = ResumableUploadClient(
                    graph,
                    slice_size=self.settings.upload_slice_size,
                    timeout=self.settings.upload_timeout_seconds,
                )
                return await uploader.upload(destination, pdf_bytes)
