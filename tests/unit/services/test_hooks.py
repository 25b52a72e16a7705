"""
Unit tests for the event capture adapter.
"""

import asyncio
import json

import httpx
import pytest

from flowsync.core.workflow_cache import WorkflowCache
from flowsync.services.hooks import EventDelivery, PlatformHooks


class Recorder:
    """MockTransport handler that records every delivered request."""

    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"status": "ok"})

    def bodies(self) -> list[tuple[str, dict]]:
        return [(r.url.path, json.loads(r.content)) for r in self.requests]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def cache():
    return WorkflowCache()


@pytest.fixture
def make_hooks(make_settings, cache):
    def _make(handler, **overrides):
        settings = make_settings(webhook_secret="s3cret", **overrides)
        delivery = EventDelivery(settings, transport=httpx.MockTransport(handler))
        return PlatformHooks(delivery, cache)

    return _make


class TestWorkflowHooks:
    @pytest.mark.asyncio
    async def test_update_sends_cleaned_payload(self, make_hooks, recorder, sample_workflow):
        hooks = make_hooks(recorder)

        await hooks.workflow_update(sample_workflow)
        await hooks.delivery.drain()

        [(path, body)] = recorder.bodies()
        assert path == "/webhook/workflow-save"
        assert body["originalName"] == "My Flow!"
        assert body["workflowId"] == "wf-123"
        assert body["folderPath"] == "Team/Reports"
        assert body["event"] == "update"
        assert "createdAt" not in body["workflow"]
        assert "parentFolder" not in body["workflow"]
        assert "id" not in body["workflow"]
        assert recorder.requests[0].headers["x-webhook-secret"] == "s3cret"
        assert str(recorder.requests[0].url).startswith("http://sync.test:3456/")
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_activate_and_deactivate_events(self, make_hooks, recorder, sample_workflow):
        hooks = make_hooks(recorder)

        await hooks.workflow_activate(sample_workflow)
        await hooks.workflow_deactivate(sample_workflow)
        await hooks.delivery.drain()

        assert sorted(body["event"] for _, body in recorder.bodies()) == ["activate", "deactivate"]
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_handler_does_not_wait_for_delivery(self, make_hooks, sample_workflow):
        release = asyncio.Event()

        async def slow_handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200)

        hooks = make_hooks(slow_handler)
        await hooks.workflow_update(sample_workflow)

        assert hooks.delivery.pending == 1
        release.set()
        await hooks.delivery.drain()
        assert hooks.delivery.pending == 0
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_nameless_workflow_skipped(self, make_hooks, recorder):
        hooks = make_hooks(recorder)
        await hooks.workflow_update({"id": "1", "nodes": []})
        await hooks.workflow_update(None)
        await hooks.delivery.drain()
        assert recorder.requests == []
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_delete_recovers_name_from_cache(self, make_hooks, recorder, cache, sample_workflow):
        hooks = make_hooks(recorder)
        await hooks.workflow_update(sample_workflow)
        await hooks.workflow_after_delete("wf-123")
        await hooks.delivery.drain()

        path, body = recorder.bodies()[-1]
        assert path == "/webhook/workflow-delete"
        assert body == {
            "workflowId": "wf-123",
            "workflowName": "My Flow!",
            "folderPath": "Team/Reports",
            "event": "afterDelete",
        }
        assert cache.get("wf-123") is None
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_delete_without_cache_sends_id_only(self, make_hooks, recorder):
        hooks = make_hooks(recorder)
        await hooks.workflow_after_delete("wf-unknown")
        await hooks.delivery.drain()

        [(_, body)] = recorder.bodies()
        assert body == {"workflowId": "wf-unknown", "event": "afterDelete"}
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_seeded_cache_used(self, make_hooks, recorder, cache):
        cache.remember({"id": 42, "name": "Seeded"})
        hooks = make_hooks(recorder)
        await hooks.workflow_after_delete(42)
        await hooks.delivery.drain()

        [(_, body)] = recorder.bodies()
        assert body["workflowName"] == "Seeded"
        await hooks.delivery.aclose()


class TestCredentialHooks:
    @pytest.mark.asyncio
    async def test_create_never_sends_values(self, make_hooks, recorder, sample_credential):
        hooks = make_hooks(recorder)
        await hooks.credentials_create(sample_credential)
        await hooks.delivery.drain()

        [(path, body)] = recorder.bodies()
        assert path == "/webhook/credential-save"
        assert body == {"id": "cred-1", "name": "My Slack", "type": "slackApi", "event": "create"}
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_create_without_id(self, make_hooks, recorder):
        hooks = make_hooks(recorder)
        await hooks.credentials_update({"name": "GH", "type": "githubApi"})
        await hooks.delivery.drain()

        [(_, body)] = recorder.bodies()
        assert body == {"name": "GH", "type": "githubApi", "event": "update"}
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_delete(self, make_hooks, recorder):
        hooks = make_hooks(recorder)
        await hooks.credentials_delete("cred-1")
        await hooks.delivery.drain()

        assert recorder.bodies() == [("/webhook/credential-delete", {"id": "cred-1", "event": "delete"})]
        await hooks.delivery.aclose()


class TestDeliveryFailures:
    @pytest.mark.asyncio
    async def test_connection_error_is_swallowed(self, make_hooks, sample_workflow):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        hooks = make_hooks(handler)
        await hooks.workflow_update(sample_workflow)
        await hooks.delivery.drain()
        await hooks.delivery.aclose()

    @pytest.mark.asyncio
    async def test_rejection_reported_as_false(self, make_settings):
        from flowsync.models.contracts.webhooks import CredentialDeletePayload

        delivery = EventDelivery(make_settings(), transport=httpx.MockTransport(Recorder(status_code=401)))
        assert await delivery.post("/webhook/credential-delete", CredentialDeletePayload(id="x")) is False
        await delivery.aclose()

    @pytest.mark.asyncio
    async def test_no_secret_header_without_secret(self, make_settings, recorder):
        from flowsync.models.contracts.webhooks import CredentialDeletePayload

        delivery = EventDelivery(make_settings(), transport=httpx.MockTransport(recorder))
        assert await delivery.post("/webhook/credential-delete", CredentialDeletePayload(id="x")) is True
        assert "x-webhook-secret" not in recorder.requests[0].headers
        await delivery.aclose()


def test_as_external_hooks_shape(make_settings, cache):
    delivery = EventDelivery(make_settings())
    hooks = PlatformHooks(delivery, cache)

    table = hooks.as_external_hooks()

    assert set(table["workflow"]) == {"update", "activate", "deactivate", "afterDelete"}
    assert set(table["credentials"]) == {"create", "update", "delete"}
    assert table["workflow"]["afterDelete"] == [hooks.workflow_after_delete]
