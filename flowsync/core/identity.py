"""
Identity & Path Mapping

Pure functions deriving stable names from user-visible ones:

- credential_key(): dedup key for the auto-maintained manifest section
- env_var_name(): proposed placeholder name for a credential field
- slugify(): file name stem for a workflow
- folder_path_from_workflow(): folder path from the platform's parent chain
- workflow_path(): canonical on-disk location of a workflow file

Stateless - no filesystem, DB or network access.
"""

from __future__ import annotations

import re
import unicodedata
from pathlib import Path
from typing import Any

WORKFLOWS_DIRNAME = "workflows"
WORKFLOW_FILE_SUFFIX = ".json"

# Embedded in every workflow file for rename-proof deletion. Never a field
# the platform interprets; strip it before importing a file back.
EMBEDDED_ID_FIELD = "_n8nId"

_NON_ALNUM_LOWER = re.compile(r"[^a-z0-9]+")
_NON_ALNUM_UPPER = re.compile(r"[^A-Z0-9]+")
_SLUG_STRIP = re.compile(r"[^A-Za-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def credential_key(name: str) -> str:
    """
    Derive the manifest key for a credential name.

    Lower-cases the name, collapses every run of characters outside
    [a-z0-9] into a single underscore and trims leading/trailing underscores.

    Example:
        >>> credential_key("My Slack API!")
        'my_slack_api'
    """
    return _NON_ALNUM_LOWER.sub("_", name.lower()).strip("_")


def _env_segment(value: str) -> str:
    return _NON_ALNUM_UPPER.sub("_", value.upper()).strip("_")


def env_var_name(credential_name: str, field_name: str) -> str:
    """
    Propose an environment variable name for a credential field.

    Example:
        >>> env_var_name("My Slack", "accessToken")
        'MY_SLACK_ACCESSTOKEN'
    """
    return f"{_env_segment(credential_name)}_{_env_segment(field_name)}"


def placeholder(env_name: str) -> str:
    """Wrap an environment variable name as a ${NAME} placeholder."""
    return f"${{{env_name}}}"


def slugify(name: str) -> str:
    """
    Slugify a workflow name into a lower-case, ASCII, hyphen-separated stem.

    Accented characters are transliterated, hyphens count as word breaks and
    every other non-alphanumeric character is dropped. An empty result falls
    back to "workflow" so a file never ends up named ".json".
    """
    ascii_name = (
        unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    )
    ascii_name = ascii_name.replace("-", " ")
    slug = _SLUG_STRIP.sub("", ascii_name).strip()
    slug = _WHITESPACE.sub("-", slug).lower()
    return slug or "workflow"


def folder_path_from_workflow(workflow: dict[str, Any]) -> str | None:
    """
    Walk a workflow's parentFolder chain from leaf to root.

    Returns the folder names joined root-first with "/", or None when the
    workflow sits at the top level.
    """
    parts: list[str] = []
    folder = workflow.get("parentFolder")
    while isinstance(folder, dict):
        name = folder.get("name")
        if name:
            parts.insert(0, str(name))
        folder = folder.get("parentFolder")
    return "/".join(parts) if parts else None


def folder_parts(folder_path: str | None) -> list[str]:
    """
    Split a folder path into safe path segments.

    Empty, "." and ".." segments are dropped so the result always stays
    beneath the workflow root.
    """
    if not folder_path:
        return []
    return [
        part
        for part in re.split(r"[/\\]+", folder_path)
        if part and part not in (".", "..")
    ]


def workflow_filename(name: str) -> str:
    """File name for a workflow: slug plus .json."""
    return slugify(name) + WORKFLOW_FILE_SUFFIX


def workflow_path(name: str, folder_path: str | None, base_dir: Path | str) -> Path:
    """
    Compute the canonical file path for a workflow.

    Args:
        name: Workflow name as shown in the platform
        folder_path: "/"-joined folder hierarchy, or None for top level
        base_dir: Root that holds the workflows/ directory

    Returns:
        <base_dir>/workflows[/<folder>...]/<slug>.json
    """
    root = Path(base_dir) / WORKFLOWS_DIRNAME
    return root.joinpath(*folder_parts(folder_path), workflow_filename(name))
