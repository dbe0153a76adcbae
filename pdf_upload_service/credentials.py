"""
Credential Provider and authenticated Graph client.

A credential source is selected once at startup from the deployment
environment: development uses a static tenant/client/secret triple,
everything else uses the platform's managed identity. Both are wrapped in
an azure-identity ChainedTokenCredential scoped to Microsoft Graph.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import httpx
from azure.core.credentials import TokenCredential
from azure.identity import (
    ChainedTokenCredential,
    ClientSecretCredential,
    ManagedIdentityCredential,
)

from .config import ServiceSettings

logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class CredentialConfigurationError(ValueError):
    """Raised when the selected credential source is missing settings."""
    pass


class GraphRequestError(Exception):
    """Non-2xx response from Graph. ``body`` holds the response text verbatim."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(body or f"HTTP {status_code}")


class CredentialSource(ABC):
    """A way of obtaining Graph tokens."""

    name: str = "unknown"

    @abstractmethod
    def build_credential(self) -> TokenCredential:
        """Construct the token credential for this source."""


class StaticSecretSource(CredentialSource):
    """Tenant/client/secret triple read from configuration."""

    name = "static_secret"

    def __init__(self, tenant_id: Optional[str], client_id: Optional[str], client_secret: Optional[str]):
        if not (tenant_id and client_id and client_secret):
            raise CredentialConfigurationError(
                "tenantId, clientId and clientSecret are required for static secret credentials"
            )
        self.tenant_id = tenant_id
        self.client_id = client_id
        self._client_secret = client_secret

    def build_credential(self) -> TokenCredential:
        return ChainedTokenCredential(
            ClientSecretCredential(
                tenant_id=self.tenant_id,
                client_id=self.client_id,
                client_secret=self._client_secret,
            )
        )


class ManagedIdentitySource(CredentialSource):
    """Ambient managed identity of the hosting platform."""

    name = "managed_identity"

    def build_credential(self) -> TokenCredential:
        return ChainedTokenCredential(ManagedIdentityCredential())


def select_credential_source(settings: ServiceSettings) -> CredentialSource:
    """Pick the credential source for the configured environment."""
    if settings.is_development:
        logger.info("Development credentials chosen")
        return StaticSecretSource(settings.tenant_id, settings.client_id, settings.client_secret)
    logger.info("Production credentials chosen")
    return ManagedIdentitySource()


class GraphClient:
    """
    Minimal async Microsoft Graph client for upload sessions.

    Authenticated calls go to ``base_url``; upload session URLs are
    pre-authorized, so slice PUTs and session deletes carry no bearer token.
    """

    def __init__(
        self,
        credential: TokenCredential,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.credential = credential
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None
        self._access_token: Optional[str] = None

    async def __aenter__(self) -> "GraphClient":
        # Per-call timeouts are applied by the caller
        self._http = httpx.AsyncClient(timeout=None, transport=self._transport)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def _bearer_token(self) -> str:
        if self._access_token is None:
            loop = asyncio.get_running_loop()
            token = await loop.run_in_executor(None, self.credential.get_token, GRAPH_SCOPE)
            self._access_token = token.token
        return self._access_token

    @staticmethod
    def _check(response: httpx.Response) -> httpx.Response:
        if response.is_error:
            raise GraphRequestError(response.status_code, response.text)
        return response

    async def post_json(self, path: str, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` to ``{base_url}/{path}`` and return the JSON body."""
        token = await self._bearer_token()
        response = await self._http.post(
            f"{self.base_url}/{path.lstrip('/')}",
            json=dict(payload),
            headers={"Authorization": f"Bearer {token}"},
        )
        return self._check(response).json()

    async def put_bytes(self, url: str, data: bytes, headers: Mapping[str, str]) -> httpx.Response:
        """PUT raw bytes to a pre-authorized upload URL."""
        response = await self._http.put(url, content=data, headers=dict(headers))
        return self._check(response)

    async def delete(self, url: str) -> None:
        """DELETE a pre-authorized upload URL."""
        response = await self._http.delete(url)
        self._check(response)
