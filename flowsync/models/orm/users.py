"""
User, Project, ProjectRelation, InstanceSetting and UserApiKey ORM models.

Maps the platform tables touched when provisioning the owner account.
Column names follow the platform's camelCase schema.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from flowsync.models.orm.base import Base


class User(Base):
    """Platform user table."""

    __tablename__ = "user"

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    first_name: Mapped[str | None] = mapped_column("firstName", String(32))
    last_name: Mapped[str | None] = mapped_column("lastName", String(32))
    password: Mapped[str | None] = mapped_column(String(255))
    role_slug: Mapped[str] = mapped_column("roleSlug", String(128))
    personalization_answers: Mapped[Any | None] = mapped_column("personalizationAnswers", JSON)
    disabled: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))


class Project(Base):
    """Platform project (workspace) table."""

    __tablename__ = "project"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    type: Mapped[str] = mapped_column(String(36))
    creator_id: Mapped[str | None] = mapped_column("creatorId", Uuid(as_uuid=False))
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))


class ProjectRelation(Base):
    """User-Project membership table."""

    __tablename__ = "project_relation"

    project_id: Mapped[str] = mapped_column(
        "projectId", String(36), ForeignKey("project.id"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        "userId", Uuid(as_uuid=False), ForeignKey("user.id"), primary_key=True
    )
    role: Mapped[str] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))


class InstanceSetting(Base):
    """Platform key/value settings table."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    load_on_startup: Mapped[bool] = mapped_column("loadOnStartup", Boolean, default=False)


class UserApiKey(Base):
    """Public API key table."""

    __tablename__ = "user_api_keys"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column("userId", Uuid(as_uuid=False), ForeignKey("user.id"))
    label: Mapped[str] = mapped_column(String(100))
    api_key: Mapped[str] = mapped_column("apiKey", String(255), unique=True)
    scopes: Mapped[Any | None] = mapped_column(JSON)
    audience: Mapped[str | None] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))
