"""
Credentials Repository

Database operations for credential rows and their project sharing.
Credentials are matched by (name, type); the data column only ever receives
platform-encrypted values.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from flowsync.models.orm.credentials import CredentialsEntity, SharedCredentials
from flowsync.models.orm.users import Project
from flowsync.repositories.base import BaseRepository

CREDENTIAL_OWNER_ROLE = "credential:owner"


class CredentialRepository(BaseRepository[CredentialsEntity]):
    """Repository for credential operations."""

    model = CredentialsEntity

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_by_name_and_type(self, name: str, type: str) -> CredentialsEntity | None:
        """Get the credential row matching a (name, type) pair."""
        return await self.get_one_by(name=name, type=type)

    async def create_credential(self, name: str, type: str, encrypted_data: str) -> CredentialsEntity:
        """
        Insert a credential row.

        Args:
            name: Credential name
            type: Credential type
            encrypted_data: Platform-encrypted field map

        Returns:
            Created credential
        """
        now = datetime.now(timezone.utc)
        credential = CredentialsEntity(
            id=str(uuid.uuid4()),
            name=name,
            type=type,
            data=encrypted_data,
            created_at=now,
            updated_at=now,
        )
        return await self.create(credential)

    async def update_data(self, credential: CredentialsEntity, encrypted_data: str) -> CredentialsEntity:
        """Replace a credential's encrypted data and bump its timestamp."""
        credential.data = encrypted_data
        credential.updated_at = datetime.now(timezone.utc)
        await self.session.flush()
        return credential

    async def get_first_project_id(self) -> str | None:
        """Get the first available project (usually the owner's personal project)."""
        result = await self.session.execute(select(Project.id).limit(1))
        return result.scalar_one_or_none()

    async def share_with_project(self, credential_id: str, project_id: str) -> None:
        """Share a credential with a project; existing shares are left alone."""
        now = datetime.now(timezone.utc)
        stmt = insert(SharedCredentials.__table__).values(
            {
                "credentialsId": credential_id,
                "projectId": project_id,
                "role": CREDENTIAL_OWNER_ROLE,
                "createdAt": now,
                "updatedAt": now,
            }
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["credentialsId", "projectId"])
        await self.session.execute(stmt)
