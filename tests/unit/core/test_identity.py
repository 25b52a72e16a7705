"""
Unit tests for identity and path mapping helpers.
"""

import re
from pathlib import Path

import pytest

from flowsync.core.identity import (
    credential_key,
    env_var_name,
    folder_parts,
    folder_path_from_workflow,
    placeholder,
    slugify,
    workflow_path,
)


class TestCredentialKey:
    """Tests for credential_key()."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("My Slack API!", "my_slack_api"),
            ("  GitHub  ", "github"),
            ("__Postgres--Prod__", "postgres_prod"),
            ("OpenAI (v2)", "openai_v2"),
            ("already_ok", "already_ok"),
        ],
    )
    def test_normalizes_names(self, name, expected):
        assert credential_key(name) == expected

    def test_is_stable(self):
        assert credential_key("Team Slack #2") == credential_key("Team Slack #2")

    @pytest.mark.parametrize("name", ["Ünïcødé Cred", "!!!x!!!", "a  b\tc", "Zoho/CRM:EU"])
    def test_key_charset(self, name):
        key = credential_key(name)
        assert re.fullmatch(r"[a-z0-9_]*", key)
        assert not key.startswith("_")
        assert not key.endswith("_")


class TestEnvVarName:
    """Tests for env_var_name() and placeholder()."""

    def test_upper_cases_and_joins(self):
        assert env_var_name("My Slack", "accessToken") == "MY_SLACK_ACCESSTOKEN"

    def test_collapses_punctuation(self):
        assert env_var_name("Postgres (prod)", "ssl-key") == "POSTGRES_PROD_SSL_KEY"

    def test_placeholder_wraps_name(self):
        assert placeholder("MY_SLACK_ACCESSTOKEN") == "${MY_SLACK_ACCESSTOKEN}"


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("My Flow!", "my-flow"),
            ("Daily  Report - v2", "daily-report-v2"),
            ("Café Déjà Vu", "cafe-deja-vu"),
            ("snake_case_name", "snakecasename"),
            ("  padded  ", "padded"),
        ],
    )
    def test_slugs(self, name, expected):
        assert slugify(name) == expected

    def test_empty_falls_back(self):
        assert slugify("!!!") == "workflow"
        assert slugify("") == "workflow"


class TestFolderPaths:
    """Tests for folder path derivation."""

    def test_walks_parent_chain_root_first(self, sample_workflow):
        assert folder_path_from_workflow(sample_workflow) == "Team/Reports"

    def test_top_level_is_none(self):
        assert folder_path_from_workflow({"name": "x"}) is None
        assert folder_path_from_workflow({"name": "x", "parentFolder": None}) is None

    def test_drops_unsafe_segments(self):
        assert folder_parts("../a/./b//c/..") == ["a", "b", "c"]
        assert folder_parts(None) == []


class TestWorkflowPath:
    """Tests for workflow_path()."""

    def test_top_level(self, tmp_path):
        path = workflow_path("My Flow!", None, tmp_path)
        assert path == tmp_path / "workflows" / "my-flow.json"
        assert path.as_posix().endswith("workflows/my-flow.json")

    def test_nested_folder(self):
        path = workflow_path("Weekly Sync", "Team/Reports", Path("/data"))
        assert path == Path("/data/workflows/Team/Reports/weekly-sync.json")

    def test_cannot_escape_root(self, tmp_path):
        path = workflow_path("x", "../../etc", tmp_path)
        assert path == tmp_path / "workflows" / "etc" / "x.json"
