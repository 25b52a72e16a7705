"""
Workflow Writer / Locator

Persists workflow documents as pretty-printed JSON under <base_dir>/workflows
and removes them again on delete. Files are keyed on disk by
(folderPath, slug(name)) and carry the platform's stable id in an embedded
field, so a delete still finds the right file after a rename or move.

Only the sync server writes here at runtime.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from flowsync.core.identity import (
    EMBEDDED_ID_FIELD,
    WORKFLOW_FILE_SUFFIX,
    WORKFLOWS_DIRNAME,
    workflow_filename,
    workflow_path,
)

logger = logging.getLogger(__name__)

# Platform-managed fields that change on every save and would only add noise
# to version control.
VOLATILE_FIELDS = frozenset({
    "createdAt",
    "updatedAt",
    "versionId",
    "statistics",
    "staticData",
    "triggerCount",
    "versionCounter",
    "activeVersionId",
    "activeVersion",
    "shared",
    "homeProject",
    "sharedWithProjects",
    "parentFolder",
})


def clean_workflow(workflow: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of a platform workflow without volatile fields.

    Drops VOLATILE_FIELDS, the row id (identity travels separately) and
    meta.instanceId; an empty meta is dropped.
    """
    cleaned = {
        key: value
        for key, value in workflow.items()
        if key not in VOLATILE_FIELDS and key != "id"
    }
    meta = cleaned.get("meta")
    if isinstance(meta, dict):
        meta = {k: v for k, v in meta.items() if k != "instanceId"}
        if meta:
            cleaned["meta"] = meta
        else:
            del cleaned["meta"]
    return cleaned


def strip_embedded_id(document: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a workflow file document ready for import."""
    return {key: value for key, value in document.items() if key != EMBEDDED_ID_FIELD}


def read_workflow(path: Path) -> dict[str, Any] | None:
    """Read a workflow file, returning None if it is not a JSON object."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug(f"Skipping unreadable workflow file {path}: {e}")
        return None
    return document if isinstance(document, dict) else None


class WorkflowFileStore:
    """Workflow files beneath <base_dir>/workflows."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)
        self.root = self.base_dir / WORKFLOWS_DIRNAME

    def _workflow_files(self) -> list[Path]:
        if not self.root.is_dir():
            return []
        return sorted(p for p in self.root.rglob(f"*{WORKFLOW_FILE_SUFFIX}") if p.is_file())

    def find_by_id(self, workflow_id: str) -> list[Path]:
        """All files whose embedded identifier equals workflow_id."""
        return [
            path
            for path in self._workflow_files()
            if (document := read_workflow(path)) is not None
            and str(document.get(EMBEDDED_ID_FIELD)) == str(workflow_id)
        ]

    def save(
        self,
        workflow: dict[str, Any],
        original_name: str,
        folder_path: str | None = None,
        workflow_id: str | None = None,
    ) -> Path:
        """
        Write a workflow file.

        Args:
            workflow: Cleaned workflow document
            original_name: Workflow name used for the file name
            folder_path: "/"-joined folder hierarchy, or None for top level
            workflow_id: Stable platform id, embedded as the first key

        Returns:
            Path of the written file
        """
        path = workflow_path(original_name, folder_path, self.base_dir)
        document = dict(workflow)
        document.pop(EMBEDDED_ID_FIELD, None)
        if workflow_id:
            document = {EMBEDDED_ID_FIELD: str(workflow_id), **document}

        if workflow_id and path.is_file():
            previous = read_workflow(path)
            other_id = previous.get(EMBEDDED_ID_FIELD) if previous else None
            if other_id and str(other_id) != str(workflow_id):
                logger.warning(
                    f"Overwriting {path}, which belonged to workflow {other_id}, "
                    f"with workflow {workflow_id} (same name and folder)"
                )

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        logger.info(f"Saved workflow '{original_name}' to {path}")

        # A rename or folder move leaves the previous file behind
        if workflow_id:
            for stale in self.find_by_id(workflow_id):
                if stale.resolve() != path.resolve():
                    self._remove(stale)
                    logger.info(f"Removed previous file for workflow {workflow_id}: {stale}")
        return path

    def locate(
        self,
        workflow_id: str | None = None,
        workflow_name: str | None = None,
        folder_path: str | None = None,
    ) -> Path | None:
        """
        Find the file for a workflow.

        Search order: embedded identifier, then the exact name-derived path,
        then any file with the name-derived file name anywhere under the
        root. With no name, the id is used as the name (files written before
        identifiers were embedded were sometimes named by id). Name matches
        that embed a different workflow's identifier are never returned.
        """
        if workflow_id:
            matches = self.find_by_id(workflow_id)
            if matches:
                return matches[0]

        name = workflow_name or workflow_id
        if not name:
            return None

        exact = workflow_path(name, folder_path, self.base_dir)
        if exact.is_file() and self._may_belong_to(exact, workflow_id):
            return exact

        filename = workflow_filename(name)
        for candidate in self._workflow_files():
            if candidate.name == filename and self._may_belong_to(candidate, workflow_id):
                return candidate
        return None

    def _may_belong_to(self, path: Path, workflow_id: str | None) -> bool:
        """False when the file embeds an identifier other than workflow_id."""
        if not workflow_id:
            return True
        document = read_workflow(path)
        embedded = document.get(EMBEDDED_ID_FIELD) if document else None
        if embedded and str(embedded) != str(workflow_id):
            logger.debug(f"{path} belongs to workflow {embedded}, not {workflow_id}")
            return False
        return True

    def delete(
        self,
        workflow_id: str | None = None,
        workflow_name: str | None = None,
        folder_path: str | None = None,
    ) -> Path | None:
        """
        Delete a workflow file.

        Returns:
            The removed path, or None if no file matched (already absent)
        """
        path = self.locate(workflow_id, workflow_name, folder_path)
        if path is None:
            logger.info(
                f"No file found for workflow (id={workflow_id}, name={workflow_name}); nothing to delete"
            )
            return None
        self._remove(path)
        logger.info(f"Deleted workflow file {path}")
        return path

    def _remove(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        self._prune_empty_dirs(path.parent)

    def _prune_empty_dirs(self, directory: Path) -> None:
        root = self.root.resolve()
        current = directory.resolve()
        while current != root and root in current.parents:
            try:
                current.rmdir()
            except OSError:
                # Not empty
                break
            current = current.parent
