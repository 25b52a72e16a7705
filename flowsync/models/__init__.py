"""
flowsync Models

ORM models (platform tables):
    from flowsync.models import User, CredentialsEntity
    from flowsync.models.orm.credentials import CredentialsEntity  # Granular access

Pydantic contracts (webhook payloads and responses):
    from flowsync.models import WorkflowSavePayload
    from flowsync.models.contracts.webhooks import WorkflowSavePayload  # Granular access
"""

from flowsync.models.contracts import (
    BasicHealthResponse,
    CredentialDeletePayload,
    CredentialSavePayload,
    WebhookAck,
    WebhookError,
    WebhookPayload,
    WorkflowDeletePayload,
    WorkflowSavePayload,
)
from flowsync.models.orm import (
    Base,
    CredentialsEntity,
    InstanceSetting,
    Project,
    ProjectRelation,
    SharedCredentials,
    User,
    UserApiKey,
)

__all__ = [
    # ORM
    "Base",
    "User",
    "Project",
    "ProjectRelation",
    "InstanceSetting",
    "UserApiKey",
    "CredentialsEntity",
    "SharedCredentials",
    # Contracts
    "BasicHealthResponse",
    "WebhookPayload",
    "WorkflowSavePayload",
    "WorkflowDeletePayload",
    "CredentialSavePayload",
    "CredentialDeletePayload",
    "WebhookAck",
    "WebhookError",
]
