"""
Credential Schema Fetcher

Best-effort lookup of a credential type's field names from the live
platform's public API. Only names are returned, never values. Any failure
(missing API key, network error, non-200, unparseable body) yields an empty
list; callers treat that as "no known fields".
"""

import logging
from pathlib import Path

import httpx

from flowsync.config import Settings

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-N8N-API-KEY"


class CredentialSchemaClient:
    """
    Client for GET /api/v1/credentials/schema/{type}.

    The service API key is read from the shared key file on every call so a
    key rotated by a later bootstrap run is picked up without a restart.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key_path: Path = settings.api_key_path
        self._client = httpx.AsyncClient(
            base_url=settings.platform_url.rstrip("/"),
            timeout=settings.schema_timeout_seconds,
            transport=transport,
        )

    def read_api_key(self) -> str | None:
        """Read the service API key from the shared file, if present."""
        try:
            api_key = self.api_key_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            logger.warning(f"API key file not found at {self.api_key_path}")
            return None
        except OSError as e:
            logger.warning(f"Could not read API key file {self.api_key_path}: {e}")
            return None
        if not api_key:
            logger.warning(f"API key file {self.api_key_path} is empty")
            return None
        logger.debug(f"Using API key {api_key[:12]}...")
        return api_key

    async def fetch_fields(self, credential_type: str) -> list[str]:
        """
        Fetch the declared field names of a credential type.

        Args:
            credential_type: Platform credential type, e.g. "slackApi"

        Returns:
            Field names in schema order, or [] on any failure
        """
        api_key = self.read_api_key()
        if not api_key:
            return []

        try:
            response = await self._client.get(
                f"/api/v1/credentials/schema/{credential_type}",
                headers={API_KEY_HEADER: api_key},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Schema fetch for '{credential_type}' failed: {e}")
            return []

        if response.status_code != 200:
            logger.warning(
                f"Schema fetch for '{credential_type}' returned HTTP {response.status_code}"
            )
            return []

        try:
            schema = response.json()
        except ValueError:
            logger.warning(f"Schema for '{credential_type}' is not valid JSON")
            return []

        properties = schema.get("properties") if isinstance(schema, dict) else None
        if not isinstance(properties, dict):
            logger.warning(f"Schema for '{credential_type}' has no properties")
            return []

        fields = list(properties.keys())
        logger.info(f"Schema for '{credential_type}': {len(fields)} fields")
        return fields

    async def aclose(self) -> None:
        await self._client.aclose()
