"""
Users Repository

Database operations for the owner account: the user row, its personal
project, the membership link, the instance setup flag and the service API key.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from flowsync.models.orm.users import (
    InstanceSetting,
    Project,
    ProjectRelation,
    User,
    UserApiKey,
)
from flowsync.repositories.base import BaseRepository

OWNER_ROLE = "global:owner"
PERSONAL_PROJECT_TYPE = "personal"
PERSONAL_OWNER_ROLE = "project:personalOwner"
OWNER_SETUP_SETTING = "userManagement.isInstanceOwnerSetUp"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class UserRepository(BaseRepository[User]):
    """Repository for owner account operations."""

    model = User

    def __init__(self, session: AsyncSession):
        super().__init__(session)

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email address."""
        return await self.get_one_by(email=email)

    async def create_owner(
        self,
        email: str,
        hashed_password: str,
        first_name: str = "Admin",
        last_name: str = "User",
    ) -> User:
        """
        Create the owner user with its personal project and membership.

        Args:
            email: Owner email
            hashed_password: bcrypt hash of the owner password
            first_name: Display first name
            last_name: Display last name

        Returns:
            Created user
        """
        now = _now()
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            first_name=first_name,
            last_name=last_name,
            password=hashed_password,
            role_slug=OWNER_ROLE,
            personalization_answers=None,
            disabled=False,
            created_at=now,
            updated_at=now,
        )
        await self.create(user)

        project = Project(
            id=str(uuid.uuid4()),
            name=f"{first_name} {last_name}",
            type=PERSONAL_PROJECT_TYPE,
            creator_id=user.id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(project)
        await self.session.flush()

        self.session.add(
            ProjectRelation(
                project_id=project.id,
                user_id=user.id,
                role=PERSONAL_OWNER_ROLE,
                created_at=now,
                updated_at=now,
            )
        )
        await self.session.flush()
        return user

    async def mark_owner_setup_complete(self) -> None:
        """Upsert the flag that skips the platform's first-run setup wizard."""
        table = InstanceSetting.__table__
        stmt = insert(table).values(
            {"key": OWNER_SETUP_SETTING, "value": '"true"', "loadOnStartup": True}
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.key],
            set_={"value": stmt.excluded.value},
        )
        await self.session.execute(stmt)

    async def get_api_key(self, key_id: str) -> UserApiKey | None:
        """Get a service API key record by its well-known id."""
        return await self.session.get(UserApiKey, key_id)

    async def create_api_key(
        self,
        key_id: str,
        user_id: str,
        label: str,
        api_key: str,
        scopes: list[str],
        audience: str,
    ) -> UserApiKey:
        """Insert a service API key record."""
        now = _now()
        record = UserApiKey(
            id=key_id,
            user_id=user_id,
            label=label,
            api_key=api_key,
            scopes=scopes,
            audience=audience,
            created_at=now,
            updated_at=now,
        )
        self.session.add(record)
        await self.session.flush()
        return record
