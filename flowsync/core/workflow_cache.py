"""
In-memory workflow cache for the capture hooks.

Delete notifications may carry only a workflow id. Save/activate/deactivate
notifications populate this cache so a later delete can still be resolved to
a name and folder for the name-based fallback match. The cache lives for the
process lifetime and is lost on restart; the primary delete match uses the
identifier embedded in each workflow file, not this cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from flowsync.core.identity import folder_path_from_workflow


@dataclass(frozen=True)
class CachedWorkflow:
    """Last known identity details of a workflow."""

    name: str
    folder_path: str | None = None
    active: bool | None = None
    is_archived: bool | None = None


class WorkflowCache:
    """
    workflow id -> CachedWorkflow lookup table.

    Injected into the capture hooks rather than held as module state so
    tests can seed and inspect it directly.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CachedWorkflow] = {}

    def remember(self, workflow: dict[str, Any]) -> CachedWorkflow | None:
        """
        Cache a raw platform workflow document.

        Documents without an id or name are ignored.
        """
        workflow_id = workflow.get("id")
        name = workflow.get("name")
        if not workflow_id or not name:
            return None
        entry = CachedWorkflow(
            name=name,
            folder_path=folder_path_from_workflow(workflow),
            active=workflow.get("active"),
            is_archived=workflow.get("isArchived"),
        )
        self._entries[str(workflow_id)] = entry
        return entry

    def get(self, workflow_id: str) -> CachedWorkflow | None:
        return self._entries.get(workflow_id)

    def pop(self, workflow_id: str) -> CachedWorkflow | None:
        return self._entries.pop(workflow_id, None)

    def __len__(self) -> int:
        return len(self._entries)
