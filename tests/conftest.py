"""
Pytest fixtures for flowsync tests.

This module provides:
1. Marker registration
2. Settings isolated to a temporary directory
3. Sample platform documents (workflows, credentials)
"""

from pathlib import Path
from typing import Any

import pytest

from flowsync.config import Settings


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")


# ==================== SETTINGS ====================


@pytest.fixture
def make_settings(tmp_path: Path):
    """Build Settings rooted at tmp_path, ignoring any .env file."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "base_dir": tmp_path,
            "webhook_secret": None,
            "platform_url": "http://n8n.test:5678",
            "sync_server_url": "http://sync.test:3456",
            "encryption_key": None,
            "owner_email": None,
            "owner_password": None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    """Settings with auth disabled."""
    return make_settings()


# ==================== SAMPLE DATA ====================


@pytest.fixture
def sample_workflow() -> dict[str, Any]:
    """A workflow document as the platform hands it to hooks."""
    return {
        "id": "wf-123",
        "name": "My Flow!",
        "active": True,
        "isArchived": False,
        "nodes": [
            {
                "id": "node-1",
                "name": "Start",
                "type": "n8n-nodes-base.manualTrigger",
                "position": [0, 0],
                "parameters": {},
            }
        ],
        "connections": {},
        "settings": {"executionOrder": "v1"},
        "meta": {"instanceId": "abc123", "templateCredsSetupCompleted": True},
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-02T00:00:00.000Z",
        "versionId": "v-1",
        "staticData": None,
        "triggerCount": 1,
        "shared": [{"role": "workflow:owner"}],
        "parentFolder": {
            "id": "f-2",
            "name": "Reports",
            "parentFolder": {"id": "f-1", "name": "Team", "parentFolder": None},
        },
    }


@pytest.fixture
def sample_credential() -> dict[str, Any]:
    """A credential document as the platform hands it to hooks."""
    return {
        "id": "cred-1",
        "name": "My Slack",
        "type": "slackApi",
        "data": "U2FsdGVkX1+encrypted",
    }
