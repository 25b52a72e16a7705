"""
Manifest parser for the credential manifest (credentials/manifest.yml).

Provides Pydantic models and functions for reading, writing and merging the
declarative credential manifest. The document has two independent
containers:

- ``credentials``: user-authored entries with an explicit ``env_mapping``
  (field name -> environment variable). Either a list or a mapping keyed by id.
- ``_autoCredentials``: entries maintained by the capture path, keyed by
  credential_key(name), whose ``data`` values are ${ENV} placeholders or
  user-supplied literals.

The capture path only ever mutates ``_autoCredentials``. Unknown top-level
keys are preserved on save.

Stateless apart from the ManifestStore file wrapper - no DB or network.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from flowsync.core.exceptions import ManifestError

logger = logging.getLogger(__name__)

AUTO_CREDENTIALS_KEY = "_autoCredentials"


# =============================================================================
# Pydantic Models
# =============================================================================


class ManifestCredential(BaseModel):
    """User-authored credential entry (env_mapping form)."""
    name: str
    type: str
    env_mapping: dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class AutoCredential(BaseModel):
    """Auto-maintained credential entry (placeholder form)."""
    id: str | None = None
    name: str
    type: str
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)


class Manifest(BaseModel):
    """The complete credential manifest."""
    credentials: list[ManifestCredential] | dict[str, ManifestCredential] = Field(default_factory=list)
    auto_credentials: dict[str, AutoCredential] = Field(
        default_factory=dict, alias=AUTO_CREDENTIALS_KEY
    )

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)

    def declared_credentials(self) -> list[ManifestCredential]:
        """User-authored entries regardless of list or mapping form."""
        if isinstance(self.credentials, dict):
            return list(self.credentials.values())
        return list(self.credentials)

    def find_auto_by_id(self, credential_id: str) -> tuple[str, AutoCredential] | None:
        """Find the auto-maintained entry carrying a platform id."""
        for key, entry in self.auto_credentials.items():
            if entry.id == credential_id:
                return key, entry
        return None


# =============================================================================
# Parse / Serialize
# =============================================================================


def parse_manifest(yaml_str: str, source: str | None = None) -> Manifest:
    """
    Parse a YAML string into a Manifest object.

    Empty documents parse as an empty Manifest.

    Raises:
        ManifestError: If the YAML is invalid or has the wrong shape
    """
    if not yaml_str or not yaml_str.strip():
        return Manifest()

    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML: {e}", path=source) from e

    if not data:
        return Manifest()
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a mapping", path=source)

    # Normalize explicit nulls ("credentials:" with nothing under it) and
    # unquoted numeric keys (older platform versions use integer ids)
    for key in ("credentials", AUTO_CREDENTIALS_KEY):
        if key in data and data[key] is None:
            del data[key]
        elif isinstance(data.get(key), dict):
            data[key] = {str(k): v for k, v in data[key].items()}

    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"Invalid manifest: {e}", path=source) from e


def serialize_manifest(manifest: Manifest) -> str:
    """
    Serialize a Manifest object to a YAML string.

    Key order is preserved (sort_keys=False) so re-serializing the same
    logical manifest produces the same bytes. An empty ``credentials``
    container is omitted; ``_autoCredentials`` entries omit an absent id.
    """
    data: dict[str, Any] = {}
    for key, value in manifest.model_dump(mode="json", by_alias=True).items():
        if key == "credentials" and not value:
            continue
        data[key] = value

    auto = data.get(AUTO_CREDENTIALS_KEY) or {}
    for entry in auto.values():
        if entry.get("id") is None:
            entry.pop("id", None)
    if not auto:
        data.pop(AUTO_CREDENTIALS_KEY, None)

    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


# =============================================================================
# File store
# =============================================================================


class ManifestStore:
    """
    Load and persist the manifest file.

    An absent file loads as an empty manifest. Writes replace the whole file
    (last writer wins); concurrent writers are not expected.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Manifest:
        """Read the manifest, returning an empty one if the file is absent."""
        if not self.path.exists():
            logger.debug(f"Manifest not found at {self.path}, starting empty")
            return Manifest()
        return parse_manifest(self.path.read_text(encoding="utf-8"), source=str(self.path))

    def save(self, manifest: Manifest) -> None:
        """Write the manifest, creating parent directories as needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(serialize_manifest(manifest), encoding="utf-8")
        logger.debug(f"Wrote manifest to {self.path}")
