"""
CredentialsEntity and SharedCredentials ORM models.

credentials_entity.data holds the platform-encrypted field map; plaintext
secrets never reach these rows.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from flowsync.models.orm.base import Base


class CredentialsEntity(Base):
    """Platform credential table."""

    __tablename__ = "credentials_entity"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(128))
    type: Mapped[str] = mapped_column(String(128))
    data: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))


class SharedCredentials(Base):
    """Credential-Project sharing table."""

    __tablename__ = "shared_credentials"

    credentials_id: Mapped[str] = mapped_column(
        "credentialsId", String(36), ForeignKey("credentials_entity.id"), primary_key=True
    )
    project_id: Mapped[str] = mapped_column(
        "projectId", String(36), ForeignKey("project.id"), primary_key=True
    )
    role: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column("updatedAt", DateTime(timezone=True))
