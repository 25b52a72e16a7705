"""
Credential Manifest Reconciler

Applies credential save/delete events to the auto-maintained section of the
manifest. Entries are keyed by credential_key(name) and matched for delete
by their stored platform id.

Field values written here are always ${ENV} placeholders; a value the user
edited by hand (another placeholder name or a literal) is kept on later
saves.
"""

import logging
from typing import Any

from flowsync.core.identity import credential_key, env_var_name, placeholder
from flowsync.services.credential_schema import CredentialSchemaClient
from flowsync.services.manifest import AutoCredential, ManifestStore

logger = logging.getLogger(__name__)


def _has_value(value: Any) -> bool:
    return value is not None and value != ""


def merge_fields(
    credential_name: str,
    fields: list[str],
    existing: dict[str, Any],
) -> dict[str, Any]:
    """
    Build the data mapping for a credential from its schema fields.

    Existing non-empty values win; missing ones get a proposed placeholder.
    With no known fields the existing mapping is returned unchanged.
    """
    if not fields:
        return dict(existing)
    data: dict[str, Any] = {}
    for field_name in fields:
        current = existing.get(field_name)
        if _has_value(current):
            data[field_name] = current
        else:
            data[field_name] = placeholder(env_var_name(credential_name, field_name))
    return data


class CredentialManifestReconciler:
    """Keeps `_autoCredentials` in step with platform credential events."""

    def __init__(self, store: ManifestStore, schema_client: CredentialSchemaClient):
        self.store = store
        self.schema_client = schema_client

    async def save_credential(
        self,
        name: str,
        credential_type: str,
        credential_id: str | None = None,
    ) -> AutoCredential:
        """
        Record a created or updated credential.

        Args:
            name: Credential name
            credential_type: Credential type
            credential_id: Stable platform id, when the event carried one

        Returns:
            The entry as written
        """
        fields = await self.schema_client.fetch_fields(credential_type)

        # Read after the fetch so the read-modify-write window stays short
        manifest = self.store.load()
        key = credential_key(name)
        auto = manifest.auto_credentials

        existing = auto.get(key)
        if existing is not None and existing.id and credential_id and existing.id != credential_id:
            logger.warning(
                f"Credential '{name}' ({credential_id}) shares key '{key}' with credential "
                f"{existing.id} ('{existing.name}'); overwriting its manifest entry"
            )
        if credential_id:
            found = manifest.find_auto_by_id(credential_id)
            if found and found[0] != key:
                old_key, moved = found
                logger.info(f"Credential {credential_id} renamed: moving '{old_key}' to '{key}'")
                del auto[old_key]
                if existing is None:
                    existing = moved

        existing_data = existing.data if existing is not None else {}
        stored_id = credential_id or (existing.id if existing is not None else None)
        extra = existing.model_extra if existing is not None and existing.model_extra else {}

        entry = AutoCredential(
            id=stored_id,
            name=name,
            type=credential_type,
            data=merge_fields(name, fields, existing_data),
            **extra,
        )
        auto[key] = entry
        self.store.save(manifest)

        logger.info(
            f"Credential '{name}' ({credential_type}) recorded under '{key}' "
            f"with {len(entry.data)} fields"
        )
        return entry

    def delete_credential(self, credential_id: str) -> bool:
        """
        Remove the entry with a stored platform id.

        Returns:
            True if an entry was removed, False if none matched
        """
        manifest = self.store.load()
        found = manifest.find_auto_by_id(credential_id)
        if found is None:
            logger.info(f"No manifest entry for credential {credential_id}")
            return False

        key, entry = found
        del manifest.auto_credentials[key]
        self.store.save(manifest)
        logger.info(f"Removed credential '{entry.name}' ({key}) from manifest")
        return True
