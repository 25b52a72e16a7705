"""
Event Capture Adapter

Runs inside the platform process. Turns workflow and credential lifecycle
notifications into normalized payloads and posts them to the sync server.

Delivery is fire-and-forget: handlers schedule the POST and return at once,
failures are logged and dropped, and nothing here ever raises into the
platform operation being observed. Credential payloads never carry values.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from flowsync.config import Settings
from flowsync.core.identity import folder_path_from_workflow
from flowsync.core.workflow_cache import WorkflowCache
from flowsync.models.contracts.webhooks import (
    CredentialDeletePayload,
    CredentialSavePayload,
    WebhookPayload,
    WorkflowDeletePayload,
    WorkflowSavePayload,
)
from flowsync.services.workflow_files import clean_workflow

logger = logging.getLogger(__name__)

SECRET_HEADER = "x-webhook-secret"

WORKFLOW_SAVE_PATH = "/webhook/workflow-save"
WORKFLOW_DELETE_PATH = "/webhook/workflow-delete"
CREDENTIAL_SAVE_PATH = "/webhook/credential-save"
CREDENTIAL_DELETE_PATH = "/webhook/credential-delete"

Handler = Callable[..., Awaitable[None]]


class EventDelivery:
    """
    Authenticated, bounded-timeout delivery to the sync server.

    send() schedules the POST as a task and returns immediately. References
    to pending tasks are kept until they finish so they are not garbage
    collected mid-flight; drain() awaits whatever is still outstanding.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        headers = {"Content-Type": "application/json"}
        if settings.webhook_secret:
            headers[SECRET_HEADER] = settings.webhook_secret
        self.base_url = settings.sync_server_base_url
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.delivery_timeout_seconds,
            transport=transport,
        )
        self._pending: set[asyncio.Task[None]] = set()

    async def post(self, path: str, payload: WebhookPayload) -> bool:
        """
        Deliver one payload and log the outcome.

        Returns:
            True on a 2xx response, False otherwise
        """
        try:
            response = await self._client.post(path, json=payload.to_wire())
        except httpx.HTTPError as e:
            logger.warning(f"Delivery to {path} failed: {e!r}")
            return False
        if response.is_success:
            logger.debug(f"Delivered to {path}: HTTP {response.status_code}")
            return True
        logger.warning(f"Delivery to {path} rejected: HTTP {response.status_code} {response.text[:200]}")
        return False

    def send(self, path: str, payload: WebhookPayload) -> asyncio.Task[None]:
        """Schedule delivery without waiting for it."""

        async def _deliver() -> None:
            await self.post(path, payload)

        task = asyncio.get_running_loop().create_task(_deliver())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        await self._client.aclose()


class PlatformHooks:
    """
    One handler per platform lifecycle event.

    Handlers are async because the platform awaits its hooks, but they only
    build a payload and schedule delivery; they never block on the network.
    """

    def __init__(self, delivery: EventDelivery, cache: WorkflowCache):
        self.delivery = delivery
        self.cache = cache

    # ==================== WORKFLOWS ====================

    def _forward_workflow(self, workflow: dict[str, Any] | None, event: str) -> None:
        if not isinstance(workflow, dict):
            logger.warning(f"workflow.{event}: no workflow document, skipping")
            return
        name = workflow.get("name")
        if not name:
            logger.warning(f"workflow.{event}: workflow has no name, skipping")
            return

        workflow_id = workflow.get("id")
        folder_path = folder_path_from_workflow(workflow)
        self.cache.remember(workflow)

        payload = WorkflowSavePayload(
            workflow=clean_workflow(workflow),
            original_name=name,
            workflow_id=str(workflow_id) if workflow_id is not None else None,
            folder_path=folder_path,
            event=event,
        )
        self.delivery.send(WORKFLOW_SAVE_PATH, payload)
        logger.info(f"workflow.{event}: '{name}' queued for sync")

    async def workflow_update(self, workflow: dict[str, Any] | None, *args: Any) -> None:
        try:
            self._forward_workflow(workflow, "update")
        except Exception as e:
            logger.error(f"workflow.update hook failed: {e}", exc_info=True)

    async def workflow_activate(self, workflow: dict[str, Any] | None, *args: Any) -> None:
        try:
            self._forward_workflow(workflow, "activate")
        except Exception as e:
            logger.error(f"workflow.activate hook failed: {e}", exc_info=True)

    async def workflow_deactivate(self, workflow: dict[str, Any] | None, *args: Any) -> None:
        try:
            self._forward_workflow(workflow, "deactivate")
        except Exception as e:
            logger.error(f"workflow.deactivate hook failed: {e}", exc_info=True)

    async def workflow_after_delete(self, workflow_id: Any, *args: Any) -> None:
        """
        Forward a workflow deletion.

        The platform passes only the id. The cache (filled by earlier saves)
        may recover the name and folder for the server's fallback match; the
        id-bearing payload is sent either way.
        """
        try:
            if isinstance(workflow_id, dict):
                workflow_id = workflow_id.get("id")
            if workflow_id is None or workflow_id == "":
                logger.warning("workflow.afterDelete: no workflow id, skipping")
                return
            workflow_id = str(workflow_id)

            cached = self.cache.pop(workflow_id)
            if cached is None:
                logger.info(f"workflow.afterDelete: {workflow_id} not in cache, sending id only")

            payload = WorkflowDeletePayload(
                workflow_id=workflow_id,
                workflow_name=cached.name if cached else None,
                folder_path=cached.folder_path if cached else None,
                event="afterDelete",
            )
            self.delivery.send(WORKFLOW_DELETE_PATH, payload)
            label = f"'{cached.name}'" if cached else workflow_id
            logger.info(f"workflow.afterDelete: {label} queued for removal")
        except Exception as e:
            logger.error(f"workflow.afterDelete hook failed: {e}", exc_info=True)

    # ==================== CREDENTIALS ====================

    def _forward_credential(self, credential: Any, event: str) -> None:
        if not isinstance(credential, dict):
            logger.warning(f"credentials.{event}: no credential document, skipping")
            return
        name = credential.get("name")
        credential_type = credential.get("type")
        if not name or not credential_type:
            logger.warning(f"credentials.{event}: credential has no name or type, skipping")
            return

        credential_id = credential.get("id")
        payload = CredentialSavePayload(
            id=str(credential_id) if credential_id is not None else None,
            name=name,
            type=credential_type,
            event=event,
        )
        self.delivery.send(CREDENTIAL_SAVE_PATH, payload)
        logger.info(f"credentials.{event}: '{name}' ({credential_type}) queued for sync")

    async def credentials_create(self, credential: Any, *args: Any) -> None:
        try:
            self._forward_credential(credential, "create")
        except Exception as e:
            logger.error(f"credentials.create hook failed: {e}", exc_info=True)

    async def credentials_update(self, credential: Any, *args: Any) -> None:
        try:
            self._forward_credential(credential, "update")
        except Exception as e:
            logger.error(f"credentials.update hook failed: {e}", exc_info=True)

    async def credentials_delete(self, credential_id: Any, *args: Any) -> None:
        try:
            if isinstance(credential_id, dict):
                credential_id = credential_id.get("id")
            if credential_id is None or credential_id == "":
                logger.warning("credentials.delete: no credential id, skipping")
                return
            self.delivery.send(CREDENTIAL_DELETE_PATH, CredentialDeletePayload(id=str(credential_id)))
            logger.info(f"credentials.delete: {credential_id} queued for removal")
        except Exception as e:
            logger.error(f"credentials.delete hook failed: {e}", exc_info=True)

    # ==================== REGISTRATION ====================

    def as_external_hooks(self) -> dict[str, dict[str, list[Handler]]]:
        """Hook table in the shape platforms that register hooks by name expect."""
        return {
            "workflow": {
                "update": [self.workflow_update],
                "activate": [self.workflow_activate],
                "deactivate": [self.workflow_deactivate],
                "afterDelete": [self.workflow_after_delete],
            },
            "credentials": {
                "create": [self.credentials_create],
                "update": [self.credentials_update],
                "delete": [self.credentials_delete],
            },
        }
