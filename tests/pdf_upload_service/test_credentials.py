"""
Unit tests for credential selection and the Graph client.
"""

from unittest.mock import patch

import httpx
import pytest
from azure.identity import ChainedTokenCredential

from conftest import GRAPH_BASE
from pdf_upload_service.credentials import (
    GRAPH_SCOPE,
    CredentialConfigurationError,
    GraphClient,
    GraphRequestError,
    ManagedIdentitySource,
    StaticSecretSource,
    select_credential_source,
)


class TestSelectCredentialSource:

    def test_development_uses_static_secret(self, settings):
        source = select_credential_source(settings)

        assert isinstance(source, StaticSecretSource)
        assert source.name == "static_secret"
        assert source.tenant_id == "test-tenant"
        assert source.client_id == "test-client"

    def test_environment_match_is_case_insensitive(self, settings):
        source = select_credential_source(settings.model_copy(update={"environment": "development"}))
        assert isinstance(source, StaticSecretSource)

    def test_production_uses_managed_identity(self, settings):
        source = select_credential_source(settings.model_copy(update={"environment": "Production"}))

        assert isinstance(source, ManagedIdentitySource)
        assert source.name == "managed_identity"

    def test_development_requires_full_secret_triple(self, settings):
        incomplete = settings.model_copy(update={"client_secret": None})

        with pytest.raises(CredentialConfigurationError):
            select_credential_source(incomplete)


class TestBuildCredential:

    @patch("pdf_upload_service.credentials.ClientSecretCredential")
    def test_static_secret_credential(self, mock_secret_credential):
        credential = StaticSecretSource("tenant", "client", "secret").build_credential()

        assert isinstance(credential, ChainedTokenCredential)
        mock_secret_credential.assert_called_once_with(
            tenant_id="tenant", client_id="client", client_secret="secret"
        )

    @patch("pdf_upload_service.credentials.ManagedIdentityCredential")
    def test_managed_identity_credential(self, mock_managed_identity):
        credential = ManagedIdentitySource().build_credential()

        assert isinstance(credential, ChainedTokenCredential)
        mock_managed_identity.assert_called_once_with()


class TestGraphClient:

    @pytest.mark.asyncio
    async def test_token_acquired_once_per_client(self, credential):
        def handler(request):
            return httpx.Response(200, json={"ok": True})

        async with GraphClient(credential, GRAPH_BASE, transport=httpx.MockTransport(handler)) as graph:
            assert await graph.post_json("drives/a", {}) == {"ok": True}
            assert await graph.post_json("drives/b", {}) == {"ok": True}

        credential.get_token.assert_called_once_with(GRAPH_SCOPE)

    @pytest.mark.asyncio
    async def test_error_response_keeps_body_verbatim(self, credential):
        def handler(request):
            return httpx.Response(401, text='{"error":{"code":"InvalidAuthenticationToken"}}')

        async with GraphClient(credential, GRAPH_BASE, transport=httpx.MockTransport(handler)) as graph:
            with pytest.raises(GraphRequestError) as exc_info:
                await graph.post_json("drives/a", {})

        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == '{"error":{"code":"InvalidAuthenticationToken"}}'

    def test_error_without_body_names_status(self):
        assert str(GraphRequestError(503, "")) == "HTTP 503"

    def test_static_secret_source_rejects_missing_values(self):
        with pytest.raises(CredentialConfigurationError):
            StaticSecretSource("tenant", None, "secret")
