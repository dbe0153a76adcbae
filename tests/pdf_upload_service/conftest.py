"""
Pytest fixtures for PDF upload service tests.
"""

import os

# IMPORTANT: Set environment variables BEFORE any imports from pdf_upload_service
# so the cached ServiceSettings is built from test values.
os.environ["AZURE_FUNCTIONS_ENVIRONMENT"] = "Development"
os.environ["tenantId"] = "test-tenant"
os.environ["clientId"] = "test-client"
os.environ["clientSecret"] = "test-secret"
os.environ["browserlessApiKey"] = "test-browserless-token"
os.environ["driveId"] = "drive-123"
os.environ["parentId"] = "parent-456"
os.environ["FUNCTION_KEY"] = "test-function-key"

import json
from types import SimpleNamespace
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import httpx
import pytest

from pdf_upload_service.config import ServiceSettings


GRAPH_BASE = "https://graph.test/v1.0"
UPLOAD_URL = "https://upload.test/session/abc"
WEB_URL = "https://contoso.sharepoint.com/sites/reports/Acme20240305BECReport.pdf"


class FakeGraph:
    """
    Records Graph traffic and answers like the upload session API.

    Session creation returns ``session_status``/``session_body``; slice PUTs
    return 202 until the last byte arrives, then 201 with ``final_item``.
    ``fail_slice`` makes the slice with that index return 500.
    """

    def __init__(
        self,
        session_status: int = 200,
        session_body: Optional[str] = None,
        final_item: Optional[Dict] = None,
        fail_slice: Optional[int] = None,
    ):
        self.session_status = session_status
        self.session_body = session_body or json.dumps(
            {"uploadUrl": UPLOAD_URL, "expirationDateTime": "2030-01-01T00:00:00Z"}
        )
        self.final_item = final_item if final_item is not None else {"id": "item-1", "webUrl": WEB_URL}
        self.fail_slice = fail_slice
        self.requests: List[httpx.Request] = []
        self.received = bytearray()

    @property
    def puts(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]

    @property
    def deletes(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "DELETE"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "POST":
            return httpx.Response(self.session_status, text=self.session_body)

        if request.method == "DELETE":
            return httpx.Response(204)

        if self.fail_slice is not None and len(self.puts) - 1 == self.fail_slice:
            return httpx.Response(500, text="slice rejected")

        self.received.extend(request.content)
        span, total = request.headers["Content-Range"].split(" ")[1].split("/")
        end = int(span.split("-")[1])
        if end + 1 == int(total):
            return httpx.Response(201, json=self.final_item)
        return httpx.Response(202, json={"nextExpectedRanges": [f"{end + 1}-"]})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings():
    """Development settings pointing at the fake Graph endpoint."""
    return ServiceSettings(
        environment="Development",
        tenant_id="test-tenant",
        client_id="test-client",
        client_secret="test-secret",
        browserless_api_key="test-browserless-token",
        drive_id="drive-123",
        parent_id="parent-456",
        graph_base_url=GRAPH_BASE,
    )


@pytest.fixture
def credential():
    """Token credential returning a fixed bearer token."""
    mock = MagicMock()
    mock.get_token.return_value = SimpleNamespace(token="test-access-token", expires_on=0)
    return mock


@pytest.fixture
def credential_source(credential):
    source = MagicMock()
    source.name = "static_secret"
    source.build_credential.return_value = credential
    return source


@pytest.fixture
def fake_graph():
    return FakeGraph()
