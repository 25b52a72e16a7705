"""
Webhooks Router

Receives normalized events from the capture hooks and applies them to the
file representation:

- workflow-save / workflow-delete -> workflow files
- credential-save / credential-delete -> credential manifest

Every endpoint requires the shared secret when one is configured. Payloads
are validated before any I/O; I/O failures become a 500 and never reach the
platform, which has already discarded the delivery result.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from flowsync.models.contracts.webhooks import (
    CredentialDeletePayload,
    CredentialSavePayload,
    WebhookAck,
    WebhookError,
    WorkflowDeletePayload,
    WorkflowSavePayload,
)
from flowsync.routers.dependencies import ManifestReconciler, RequireWebhookSecret, WorkflowStore

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/webhook",
    tags=["Webhooks"],
    dependencies=[RequireWebhookSecret],
    responses={
        400: {"model": WebhookError},
        401: {"model": WebhookError},
        500: {"model": WebhookError},
    },
)


def _server_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content=WebhookError(error=message).model_dump(exclude_none=True))


@router.post("/workflow-save", response_model=WebhookAck, response_model_exclude_none=True)
async def workflow_save(payload: WorkflowSavePayload, store: WorkflowStore):
    """Write (or rewrite) the file for a saved, activated or deactivated workflow."""
    try:
        path = store.save(
            payload.workflow,
            payload.original_name,
            folder_path=payload.folder_path,
            workflow_id=payload.workflow_id,
        )
    except OSError as e:
        logger.error(
            f"Failed to save workflow '{payload.original_name}': {e}",
            extra={"workflow_id": payload.workflow_id, "event": payload.event},
        )
        return _server_error("failed to save workflow")
    return WebhookAck(path=str(path))


@router.post("/workflow-delete", response_model=WebhookAck, response_model_exclude_none=True)
async def workflow_delete(payload: WorkflowDeletePayload, store: WorkflowStore):
    """Remove the file for a deleted workflow; an already-absent file is not an error."""
    try:
        path = store.delete(
            workflow_id=payload.workflow_id,
            workflow_name=payload.workflow_name,
            folder_path=payload.folder_path,
        )
    except OSError as e:
        logger.error(
            f"Failed to delete workflow: {e}",
            extra={"workflow_id": payload.workflow_id, "workflow_name": payload.workflow_name},
        )
        return _server_error("failed to delete workflow")
    if path is None:
        return WebhookAck(deleted=False, message="workflow file not found")
    return WebhookAck(path=str(path), deleted=True)


@router.post("/credential-save", response_model=WebhookAck, response_model_exclude_none=True)
async def credential_save(payload: CredentialSavePayload, reconciler: ManifestReconciler):
    """Record a created or updated credential in the manifest (names only, never values)."""
    try:
        await reconciler.save_credential(payload.name, payload.type, credential_id=payload.id)
    except Exception as e:
        logger.error(
            f"Failed to update manifest for credential '{payload.name}': {e}",
            extra={"credential_id": payload.id, "credential_type": payload.type},
            exc_info=True,
        )
        return _server_error("failed to save credential")
    return WebhookAck(id=payload.id)


@router.post("/credential-delete", response_model=WebhookAck, response_model_exclude_none=True)
async def credential_delete(payload: CredentialDeletePayload, reconciler: ManifestReconciler):
    """Remove a deleted credential's manifest entry, matched by stored id."""
    try:
        deleted = reconciler.delete_credential(payload.id)
    except Exception as e:
        logger.error(
            f"Failed to remove credential {payload.id} from manifest: {e}",
            extra={"credential_id": payload.id},
            exc_info=True,
        )
        return _server_error("failed to delete credential")
    return WebhookAck(id=payload.id, deleted=deleted)
