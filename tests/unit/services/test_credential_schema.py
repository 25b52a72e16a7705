"""
Unit tests for the credential schema fetcher.
"""

import httpx
import pytest

from flowsync.services.credential_schema import API_KEY_HEADER, CredentialSchemaClient


SLACK_SCHEMA = {
    "type": "object",
    "properties": {
        "accessToken": {"type": "string"},
        "signatureSecret": {"type": "string"},
    },
    "required": ["accessToken"],
}


def write_api_key(settings, value="n8n_api_0123456789abcdef0123456789abcdef"):
    settings.api_key_path.parent.mkdir(parents=True, exist_ok=True)
    settings.api_key_path.write_text(value + "\n", encoding="utf-8")
    return value


class TestFetchFields:
    """Tests for CredentialSchemaClient.fetch_fields()."""

    @pytest.mark.asyncio
    async def test_returns_property_names(self, settings):
        api_key = write_api_key(settings)
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get(API_KEY_HEADER)
            return httpx.Response(200, json=SLACK_SCHEMA)

        client = CredentialSchemaClient(settings, transport=httpx.MockTransport(handler))
        try:
            fields = await client.fetch_fields("slackApi")
        finally:
            await client.aclose()

        assert fields == ["accessToken", "signatureSecret"]
        assert seen["url"] == "http://n8n.test:5678/api/v1/credentials/schema/slackApi"
        assert seen["key"] == api_key

    @pytest.mark.asyncio
    async def test_missing_key_file_returns_empty(self, settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected without an API key")

        client = CredentialSchemaClient(settings, transport=httpx.MockTransport(handler))
        assert await client.fetch_fields("slackApi") == []
        await client.aclose()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, json={"message": "not found"}),
            httpx.Response(500, text="boom"),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json={"type": "object"}),
            httpx.Response(200, json=["not", "a", "schema"]),
        ],
    )
    async def test_bad_responses_return_empty(self, settings, response):
        write_api_key(settings)
        client = CredentialSchemaClient(settings, transport=httpx.MockTransport(lambda request: response))
        assert await client.fetch_fields("unknownType") == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_network_error_returns_empty(self, settings):
        write_api_key(settings)

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = CredentialSchemaClient(settings, transport=httpx.MockTransport(handler))
        assert await client.fetch_fields("slackApi") == []
        await client.aclose()

    def test_empty_key_file(self, settings):
        write_api_key(settings, value="   ")
        client = CredentialSchemaClient(settings)
        assert client.read_api_key() is None
