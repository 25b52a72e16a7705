"""
Webhook contract models for flowsync.

One tagged payload type per event kind. The capture hooks build these and
post them to the sync server, which validates them at the boundary before
dispatching. Wire names are camelCase.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


WorkflowSaveEvent = Literal["update", "activate", "deactivate"]
WorkflowDeleteEvent = Literal["afterDelete", "delete"]
CredentialSaveEvent = Literal["create", "update"]


class WebhookPayload(BaseModel):
    """Base for payloads exchanged between the capture hooks and the sync server."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase wire names, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ==================== WORKFLOW PAYLOADS ====================


class WorkflowSavePayload(WebhookPayload):
    """Workflow saved, activated or deactivated."""
    workflow: dict[str, Any] = Field(..., description="Workflow document with volatile fields stripped")
    original_name: str = Field(..., min_length=1, alias="originalName", description="Workflow name at save time")
    workflow_id: str | None = Field(None, alias="workflowId", description="Stable platform identifier")
    folder_path: str | None = Field(None, alias="folderPath", description="'/'-joined folder hierarchy")
    event: WorkflowSaveEvent = Field(..., description="Platform lifecycle event")

    @field_validator("workflow")
    @classmethod
    def workflow_not_empty(cls, value: dict[str, Any]) -> dict[str, Any]:
        if not value:
            raise ValueError("workflow document is empty")
        return value


class WorkflowDeletePayload(WebhookPayload):
    """Workflow deleted. Carries the stable id; the name is only known on a cache hit."""
    workflow_id: str | None = Field(None, alias="workflowId", description="Stable platform identifier")
    workflow_name: str | None = Field(None, alias="workflowName", description="Last known workflow name")
    folder_path: str | None = Field(None, alias="folderPath", description="Last known folder path")
    event: WorkflowDeleteEvent = Field(default="afterDelete", description="Platform lifecycle event")

    @model_validator(mode="after")
    def require_identity(self) -> "WorkflowDeletePayload":
        if not self.workflow_id and not self.workflow_name:
            raise ValueError("workflowId or workflowName is required")
        return self


# ==================== CREDENTIAL PAYLOADS ====================


class CredentialSavePayload(WebhookPayload):
    """Credential created or updated. Never carries field values."""
    id: str | None = Field(None, description="Stable platform identifier (absent on some create hooks)")
    name: str = Field(..., min_length=1, description="Credential name")
    type: str = Field(..., min_length=1, description="Credential type, e.g. slackApi")
    event: CredentialSaveEvent = Field(..., description="Platform lifecycle event")


class CredentialDeletePayload(WebhookPayload):
    """Credential deleted."""
    id: str = Field(..., min_length=1, description="Stable platform identifier")
    event: Literal["delete"] = Field(default="delete", description="Platform lifecycle event")


# ==================== RESPONSES ====================


class WebhookAck(BaseModel):
    """Successful webhook response."""
    status: Literal["ok"] = "ok"
    path: str | None = Field(None, description="File written or removed")
    id: str | None = Field(None, description="Credential identifier")
    deleted: bool | None = Field(None, description="Whether a manifest entry was removed")
    message: str | None = Field(None, description="Informational note")


class WebhookError(BaseModel):
    """Error response body."""
    error: str = Field(..., description="Short error description")
    detail: list[dict[str, Any]] | None = Field(None, description="Validation errors")
