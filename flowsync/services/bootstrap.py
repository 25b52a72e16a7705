"""
Bootstrap Reconciler

One-shot provisioning against the platform database:

1. Owner account: create the owner user (with personal project and
   membership) if configured and absent, mark first-run setup complete and
   make sure the service API key exists and is written to the shared file.
2. Credentials: materialize every manifest entry into credentials_entity,
   resolving secrets from the environment and encrypting them with the
   platform cipher. Rows are upserted by (name, type).

Configuration problems (missing encryption key while a manifest exists)
abort before anything is written. Per-credential failures are rolled back,
counted and skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from flowsync.config import Settings
from flowsync.core.exceptions import ConfigurationError
from flowsync.core.placeholders import placeholder_name, resolve_env_var, resolve_placeholder
from flowsync.core.security import PlatformCipher, generate_api_key, get_password_hash
from flowsync.repositories.credentials import CredentialRepository
from flowsync.repositories.users import UserRepository
from flowsync.services.manifest import Manifest, ManifestStore

logger = logging.getLogger(__name__)

SERVICE_API_KEY_ID = "watch-srv-key"
SERVICE_API_KEY_LABEL = "watch-server"
SERVICE_API_KEY_SCOPES = ["credentials:read"]
SERVICE_API_KEY_AUDIENCE = "public-api"


@dataclass
class BootstrapSummary:
    """Counters reported at the end of a bootstrap run."""

    owner_created: bool = False
    api_key_created: bool = False
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    skipped_names: list[str] = field(default_factory=list)
    failed_names: list[str] = field(default_factory=list)


@dataclass
class ResolvedCredential:
    """A manifest entry with its secrets resolved and ready to encrypt."""

    name: str
    type: str
    data: dict[str, Any]


def resolve_env_mapping(
    env_mapping: Mapping[str, str],
    environ: Mapping[str, str] | None = None,
) -> tuple[dict[str, Any], list[str]]:
    """
    Resolve a user-authored env_mapping.

    Every mapped variable is required: the caller skips the whole entry if
    any name is returned as missing. Mapping values may be written either as
    a bare variable name or as ${NAME}.

    Returns:
        (resolved field values, missing variable names)
    """
    data: dict[str, Any] = {}
    missing: list[str] = []
    for field_name, env_name in env_mapping.items():
        name = placeholder_name(env_name) or str(env_name)
        result = resolve_env_var(name, environ)
        if result.resolved:
            data[field_name] = result.value
        else:
            missing.extend(result.missing)
    return data, missing


def resolve_auto_data(
    data: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> tuple[dict[str, Any], list[str]]:
    """
    Resolve an auto-maintained data mapping field by field.

    Unresolved placeholders drop only their own field; literals pass through.

    Returns:
        (resolved field values, missing variable names)
    """
    resolved: dict[str, Any] = {}
    missing: list[str] = []
    for field_name, raw in data.items():
        result = resolve_placeholder(raw, environ)
        if result.resolved:
            resolved[field_name] = result.value
        else:
            missing.extend(result.missing)
    return resolved, missing


class BootstrapReconciler:
    """Provision the owner account and manifest credentials into the platform."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        cipher: PlatformCipher | None = None,
        users: UserRepository | None = None,
        credentials: CredentialRepository | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        self.session = session
        self.settings = settings
        self.cipher = cipher
        if self.cipher is None and settings.encryption_key:
            self.cipher = PlatformCipher(settings.encryption_key)
        self.users = users or UserRepository(session)
        self.credentials = credentials or CredentialRepository(session)
        self.environ = environ
        self.manifest_store = ManifestStore(settings.manifest_path)

    # ==================== STEP 1: OWNER ====================

    async def ensure_owner_account(self, summary: BootstrapSummary | None = None) -> BootstrapSummary:
        """
        Create the owner account if configured and absent.

        The setup flag and the service API key file are ensured on every run,
        even when the owner already exists.
        """
        summary = summary or BootstrapSummary()
        email = self.settings.owner_email
        password = self.settings.owner_password
        if not email or not password:
            logger.info("Owner email/password not configured, skipping owner setup")
            return summary

        user = await self.users.get_by_email(email)
        if user is None:
            user = await self.users.create_owner(email, get_password_hash(password))
            summary.owner_created = True
            logger.info(f"Created owner account {email}")
        else:
            logger.info(f"Owner account {email} already exists")

        await self.users.mark_owner_setup_complete()

        record = await self.users.get_api_key(SERVICE_API_KEY_ID)
        if record is None:
            api_key = generate_api_key()
            await self.users.create_api_key(
                key_id=SERVICE_API_KEY_ID,
                user_id=user.id,
                label=SERVICE_API_KEY_LABEL,
                api_key=api_key,
                scopes=list(SERVICE_API_KEY_SCOPES),
                audience=SERVICE_API_KEY_AUDIENCE,
            )
            summary.api_key_created = True
            logger.info(f"Created service API key {api_key[:12]}...")
        else:
            api_key = record.api_key
            logger.info(f"Reusing service API key {api_key[:12]}...")

        await self.session.commit()
        self._write_api_key(api_key)
        return summary

    def _write_api_key(self, api_key: str) -> None:
        path = self.settings.api_key_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(api_key + "\n", encoding="utf-8")
        logger.info(f"Wrote service API key to {path}")

    # ==================== STEP 2: CREDENTIALS ====================

    def resolve_manifest(self, manifest: Manifest, summary: BootstrapSummary) -> list[ResolvedCredential]:
        """Resolve both manifest containers, recording skipped entries."""
        resolved: list[ResolvedCredential] = []

        for entry in manifest.declared_credentials():
            data, missing = resolve_env_mapping(entry.env_mapping, self.environ)
            if missing:
                summary.skipped += 1
                summary.skipped_names.append(entry.name)
                logger.warning(f"Skipping '{entry.name}': missing env vars {', '.join(missing)}")
                continue
            resolved.append(ResolvedCredential(entry.name, entry.type, data))

        for key, auto in manifest.auto_credentials.items():
            data, missing = resolve_auto_data(auto.data, self.environ)
            if not data:
                summary.skipped += 1
                summary.skipped_names.append(auto.name)
                logger.warning(f"Skipping '{auto.name}' ({key}): no fields resolved")
                continue
            if missing:
                logger.info(f"'{auto.name}': omitting fields with unset env vars {', '.join(missing)}")
            resolved.append(ResolvedCredential(auto.name, auto.type, data))

        return resolved

    async def upsert_credential(self, credential: ResolvedCredential) -> bool:
        """
        Insert or update one credential row.

        Returns:
            True if a row was created, False if an existing row was updated
        """
        if self.cipher is None:
            raise ConfigurationError("N8N_ENCRYPTION_KEY is required to materialize credentials")
        encrypted = self.cipher.encrypt(credential.data)

        existing = await self.credentials.get_by_name_and_type(credential.name, credential.type)
        if existing is not None:
            await self.credentials.update_data(existing, encrypted)
            return False

        row = await self.credentials.create_credential(credential.name, credential.type, encrypted)
        project_id = await self.credentials.get_first_project_id()
        if project_id:
            await self.credentials.share_with_project(row.id, project_id)
        else:
            logger.warning(f"No project available to share '{credential.name}' with")
        return True

    async def materialize_credentials(
        self,
        manifest: Manifest,
        summary: BootstrapSummary | None = None,
    ) -> BootstrapSummary:
        """Upsert every resolvable manifest credential, one commit per credential."""
        summary = summary or BootstrapSummary()
        for credential in self.resolve_manifest(manifest, summary):
            try:
                created = await self.upsert_credential(credential)
                await self.session.commit()
            except ConfigurationError:
                raise
            except Exception as e:
                await self.session.rollback()
                summary.failed += 1
                summary.failed_names.append(credential.name)
                logger.error(f"Failed to upsert '{credential.name}' ({credential.type}): {e}")
                continue

            if created:
                summary.created += 1
                logger.info(f"Created credential '{credential.name}' ({credential.type})")
            else:
                summary.updated += 1
                logger.info(f"Updated credential '{credential.name}' ({credential.type})")
        return summary

    # ==================== RUN ====================

    def check_configuration(self) -> Manifest | None:
        """
        Validate configuration before anything is written.

        Returns:
            The parsed manifest, or None when no manifest file exists

        Raises:
            ConfigurationError: If a manifest exists but no encryption key is set
            ManifestError: If the manifest cannot be parsed
        """
        if not self.manifest_store.path.exists():
            logger.info(f"No manifest at {self.manifest_store.path}, skipping credentials")
            return None
        manifest = self.manifest_store.load()
        if self.cipher is None:
            raise ConfigurationError(
                "N8N_ENCRYPTION_KEY is required when a credential manifest is present"
            )
        return manifest

    async def run(self) -> BootstrapSummary:
        """Run both steps in order."""
        manifest = self.check_configuration()
        summary = BootstrapSummary()
        await self.ensure_owner_account(summary)
        if manifest is not None:
            await self.materialize_credentials(manifest, summary)
        return summary
