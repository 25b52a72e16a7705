"""
Unit tests for the bootstrap reconciler.

Repositories are replaced with in-memory fakes so idempotence can be checked
across repeated runs without a database.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from flowsync.core.exceptions import ConfigurationError
from flowsync.core.security import PlatformCipher, verify_password
from flowsync.services.bootstrap import (
    SERVICE_API_KEY_ID,
    BootstrapReconciler,
    resolve_auto_data,
    resolve_env_mapping,
)
from flowsync.services.manifest import parse_manifest

ENCRYPTION_KEY = "test-encryption-key"

MANIFEST = """
credentials:
  - name: Postgres Prod
    type: postgres
    env_mapping:
      host: PG_HOST
      password: PG_PASSWORD
  - name: Needs Missing
    type: httpBasicAuth
    env_mapping:
      user: BASIC_USER
      password: BASIC_PASSWORD_UNSET
_autoCredentials:
  my_slack:
    id: cred-1
    name: My Slack
    type: slackApi
    data:
      accessToken: ${SLACK_TOKEN}
      signatureSecret: ${SLACK_SIGNING_UNSET}
  nothing_set:
    name: Nothing Set
    type: githubApi
    data:
      accessToken: ${GH_TOKEN_UNSET}
"""

ENVIRON = {
    "PG_HOST": "db.internal",
    "PG_PASSWORD": "hunter2",
    "BASIC_USER": "admin",
    "SLACK_TOKEN": "xoxb-123",
}


class FakeUserRepository:
    def __init__(self):
        self.users: dict[str, SimpleNamespace] = {}
        self.api_keys: dict[str, SimpleNamespace] = {}
        self.setup_complete_calls = 0

    async def get_by_email(self, email):
        return self.users.get(email)

    async def create_owner(self, email, hashed_password, first_name="Admin", last_name="User"):
        user = SimpleNamespace(id=f"user-{len(self.users) + 1}", email=email, password=hashed_password)
        self.users[email] = user
        return user

    async def mark_owner_setup_complete(self):
        self.setup_complete_calls += 1

    async def get_api_key(self, key_id):
        return self.api_keys.get(key_id)

    async def create_api_key(self, key_id, user_id, label, api_key, scopes, audience):
        record = SimpleNamespace(id=key_id, user_id=user_id, label=label, api_key=api_key,
                                 scopes=scopes, audience=audience)
        self.api_keys[key_id] = record
        return record


class FakeCredentialRepository:
    def __init__(self, project_id="project-1"):
        self.rows: dict[tuple[str, str], SimpleNamespace] = {}
        self.shares: list[tuple[str, str]] = []
        self.project_id = project_id
        self.fail_on: set[str] = set()

    async def get_by_name_and_type(self, name, type):
        return self.rows.get((name, type))

    async def create_credential(self, name, type, encrypted_data):
        if name in self.fail_on:
            raise RuntimeError("insert failed")
        row = SimpleNamespace(id=f"c-{len(self.rows) + 1}", name=name, type=type, data=encrypted_data)
        self.rows[(name, type)] = row
        return row

    async def update_data(self, credential, encrypted_data):
        credential.data = encrypted_data
        return credential

    async def get_first_project_id(self):
        return self.project_id

    async def share_with_project(self, credential_id, project_id):
        self.shares.append((credential_id, project_id))


@pytest.fixture
def session():
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def users():
    return FakeUserRepository()


@pytest.fixture
def credentials():
    return FakeCredentialRepository()


@pytest.fixture
def owner_settings(make_settings):
    return make_settings(
        owner_email="owner@example.com",
        owner_password="Sup3rSecret!",
        encryption_key=ENCRYPTION_KEY,
    )


def write_manifest(settings, text=MANIFEST):
    settings.manifest_path.parent.mkdir(parents=True, exist_ok=True)
    settings.manifest_path.write_text(text, encoding="utf-8")


def make_reconciler(session, settings, users, credentials, environ=ENVIRON):
    return BootstrapReconciler(
        session, settings, users=users, credentials=credentials, environ=environ
    )


class TestResolution:
    def test_env_mapping_reports_missing(self):
        data, missing = resolve_env_mapping({"a": "A", "b": "${B}", "c": "C"}, {"A": "1", "B": "true"})
        assert data == {"a": 1, "b": True}
        assert missing == ["C"]

    def test_auto_data_drops_only_unresolved_fields(self):
        data, missing = resolve_auto_data(
            {"token": "${T}", "region": "eu-west-1", "secret": "${S}"}, {"T": "abc"}
        )
        assert data == {"token": "abc", "region": "eu-west-1"}
        assert missing == ["S"]


class TestOwnerAccount:
    @pytest.mark.asyncio
    async def test_creates_owner_and_api_key(self, session, owner_settings, users, credentials):
        reconciler = make_reconciler(session, owner_settings, users, credentials)

        summary = await reconciler.ensure_owner_account()

        assert summary.owner_created
        assert summary.api_key_created
        user = users.users["owner@example.com"]
        assert verify_password("Sup3rSecret!", user.password)
        record = users.api_keys[SERVICE_API_KEY_ID]
        assert record.scopes == ["credentials:read"]
        assert record.audience == "public-api"
        assert owner_settings.api_key_path.read_text(encoding="utf-8").strip() == record.api_key
        session.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_existing_owner_still_ensures_flag_and_key_file(
        self, session, owner_settings, users, credentials
    ):
        reconciler = make_reconciler(session, owner_settings, users, credentials)
        await reconciler.ensure_owner_account()
        owner_settings.api_key_path.unlink()

        summary = await reconciler.ensure_owner_account()

        assert not summary.owner_created
        assert not summary.api_key_created
        assert len(users.users) == 1
        assert users.setup_complete_calls == 2
        assert owner_settings.api_key_path.exists()

    @pytest.mark.asyncio
    async def test_skipped_without_credentials(self, session, make_settings, users, credentials):
        reconciler = make_reconciler(session, make_settings(owner_email="a@b.c"), users, credentials)
        summary = await reconciler.ensure_owner_account()
        assert not summary.owner_created
        assert users.users == {}


class TestMaterializeCredentials:
    @pytest.mark.asyncio
    async def test_counts_and_encryption(self, session, owner_settings, users, credentials):
        reconciler = make_reconciler(session, owner_settings, users, credentials)
        summary = await reconciler.materialize_credentials(parse_manifest(MANIFEST))

        assert summary.created == 2
        assert summary.updated == 0
        assert summary.skipped == 2
        assert summary.failed == 0
        assert set(summary.skipped_names) == {"Needs Missing", "Nothing Set"}

        cipher = PlatformCipher(ENCRYPTION_KEY)
        pg = credentials.rows[("Postgres Prod", "postgres")]
        assert cipher.decrypt(pg.data) == {"host": "db.internal", "password": "hunter2"}
        slack = credentials.rows[("My Slack", "slackApi")]
        assert cipher.decrypt(slack.data) == {"accessToken": "xoxb-123"}
        assert len(credentials.shares) == 2

    @pytest.mark.asyncio
    async def test_second_run_updates_instead_of_duplicating(
        self, session, owner_settings, users, credentials
    ):
        write_manifest(owner_settings)

        first = await make_reconciler(session, owner_settings, users, credentials).run()
        second = await make_reconciler(session, owner_settings, users, credentials).run()

        assert first.created == 2 and first.updated == 0
        assert second.created == 0 and second.updated == 2
        assert len(credentials.rows) == 2
        assert len(credentials.shares) == 2
        assert len(users.users) == 1

    @pytest.mark.asyncio
    async def test_failure_is_counted_and_processing_continues(
        self, session, owner_settings, users, credentials
    ):
        credentials.fail_on.add("Postgres Prod")
        reconciler = make_reconciler(session, owner_settings, users, credentials)

        summary = await reconciler.materialize_credentials(parse_manifest(MANIFEST))

        assert summary.failed == 1
        assert summary.failed_names == ["Postgres Prod"]
        assert summary.created == 1
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_project_skips_sharing(self, session, owner_settings, users):
        credentials = FakeCredentialRepository(project_id=None)
        reconciler = make_reconciler(session, owner_settings, users, credentials)
        summary = await reconciler.materialize_credentials(parse_manifest(MANIFEST))
        assert summary.created == 2
        assert credentials.shares == []


class TestRun:
    @pytest.mark.asyncio
    async def test_missing_encryption_key_aborts_before_writes(
        self, session, make_settings, users, credentials
    ):
        settings = make_settings(owner_email="owner@example.com", owner_password="pw")
        write_manifest(settings)
        reconciler = make_reconciler(session, settings, users, credentials)

        with pytest.raises(ConfigurationError):
            await reconciler.run()

        assert users.users == {}
        assert credentials.rows == {}
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_manifest_only_owner(self, session, owner_settings, users, credentials):
        summary = await make_reconciler(session, owner_settings, users, credentials).run()
        assert summary.owner_created
        assert summary.created == 0
        assert credentials.rows == {}
