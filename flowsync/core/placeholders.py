"""
Secret placeholder resolution.

Manifest values of the form ${NAME} are indirections through the process
environment. Resolution coerces the environment string:

- "true" / "false" become booleans
- anything numeric becomes int or float
- everything else stays a string

Unset or empty variables are reported as missing; callers decide whether a
missing variable skips the field or the whole credential.
"""

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"^\$\{([^}]+)\}$")
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


@dataclass
class ResolvedValue:
    """Outcome of resolving one manifest value."""

    value: Any = None
    missing: list[str] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return not self.missing


def placeholder_name(value: Any) -> str | None:
    """Return NAME if value is a ${NAME} placeholder, else None."""
    if not isinstance(value, str):
        return None
    match = PLACEHOLDER_PATTERN.match(value)
    return match.group(1) if match else None


def coerce_env_value(raw: str) -> bool | int | float | str:
    """
    Coerce an environment string into a typed credential value.

    Args:
        raw: Non-empty environment variable value

    Returns:
        bool for "true"/"false", int/float for numeric text, otherwise raw
    """
    if raw == "true":
        return True
    if raw == "false":
        return False
    stripped = raw.strip()
    if stripped and _NUMBER_PATTERN.match(stripped):
        if any(c in stripped for c in ".eE"):
            return float(stripped)
        return int(stripped)
    return raw


def resolve_env_var(name: str, environ: Mapping[str, str] | None = None) -> ResolvedValue:
    """Look up and coerce a single environment variable."""
    env = os.environ if environ is None else environ
    raw = env.get(name)
    if raw is None or raw == "":
        return ResolvedValue(value=None, missing=[name])
    return ResolvedValue(value=coerce_env_value(raw))


def resolve_placeholder(value: Any, environ: Mapping[str, str] | None = None) -> ResolvedValue:
    """
    Resolve a manifest value that may be a ${NAME} placeholder.

    Literal values (anything that is not exactly a placeholder) pass through
    unchanged, so users can pin non-secret values directly in the manifest.
    """
    name = placeholder_name(value)
    if name is None:
        return ResolvedValue(value=value)
    return resolve_env_var(name, environ)
