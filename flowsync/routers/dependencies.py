"""
Router dependencies.

Services are created once in create_app() and kept on app.state; these
helpers hand them to endpoints.
"""

import logging
from typing import Annotated

from fastapi import Depends, Request

from flowsync.config import Settings
from flowsync.core.exceptions import WebhookAuthError
from flowsync.core.security import secrets_match
from flowsync.services.manifest_reconciler import CredentialManifestReconciler
from flowsync.services.workflow_files import WorkflowFileStore

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_workflow_store(request: Request) -> WorkflowFileStore:
    return request.app.state.workflow_store


def get_manifest_reconciler(request: Request) -> CredentialManifestReconciler:
    return request.app.state.manifest_reconciler


async def verify_webhook_secret(request: Request) -> None:
    """
    Check the shared secret on a webhook request.

    Accepts the x-webhook-secret header or a ?secret= query parameter. When
    no secret is configured every request passes.

    Raises:
        WebhookAuthError: If a secret is configured and the request does not match it
    """
    settings: Settings = request.app.state.settings
    if not settings.webhook_secret:
        return
    provided = request.headers.get("x-webhook-secret") or request.query_params.get("secret")
    if not secrets_match(provided, settings.webhook_secret):
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected webhook {request.url.path} from {client}: bad or missing secret")
        raise WebhookAuthError()


AppSettings = Annotated[Settings, Depends(get_app_settings)]
WorkflowStore = Annotated[WorkflowFileStore, Depends(get_workflow_store)]
ManifestReconciler = Annotated[CredentialManifestReconciler, Depends(get_manifest_reconciler)]

# Usage: dependencies=[RequireWebhookSecret]
RequireWebhookSecret = Depends(verify_webhook_secret)
