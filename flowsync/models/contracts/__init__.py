"""
Pydantic contract models (request/response) for flowsync.
"""

from flowsync.models.contracts.health import BasicHealthResponse
from flowsync.models.contracts.webhooks import (
    CredentialDeletePayload,
    CredentialSavePayload,
    WebhookAck,
    WebhookError,
    WebhookPayload,
    WorkflowDeletePayload,
    WorkflowSavePayload,
)

__all__ = [
    "BasicHealthResponse",
    "WebhookPayload",
    "WorkflowSavePayload",
    "WorkflowDeletePayload",
    "CredentialSavePayload",
    "CredentialDeletePayload",
    "WebhookAck",
    "WebhookError",
]
