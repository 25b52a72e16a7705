"""
SQLAlchemy ORM Models for flowsync

Mappings onto the platform tables the bootstrap path reads and writes,
using SQLAlchemy 2.0 declarative style.

For request/response schemas, see flowsync.models.contracts
"""

from flowsync.models.orm.base import Base
from flowsync.models.orm.credentials import CredentialsEntity, SharedCredentials
from flowsync.models.orm.users import (
    InstanceSetting,
    Project,
    ProjectRelation,
    User,
    UserApiKey,
)

__all__ = [
    # Base
    "Base",
    # Owner account
    "User",
    "Project",
    "ProjectRelation",
    "InstanceSetting",
    "UserApiKey",
    # Credentials
    "CredentialsEntity",
    "SharedCredentials",
]
