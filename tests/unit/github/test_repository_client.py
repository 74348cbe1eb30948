"""Tests for the repository-level GitHub client."""

from __future__ import annotations

import base64
import json

import httpx
import pytest
import yaml

from ticket_tagger_core.exceptions import (
    ConfigConflictError,
    ConfigFormatError,
    ConfigValidationError,
)
from ticket_tagger_core.models.repository_config import RepositoryConfig
from ticket_tagger_infra.github.app_client import AppClient
from ticket_tagger_infra.github.credentials import InstallationCredential
from ticket_tagger_infra.github.repository_client import RepositoryClient
from ticket_tagger_infra.github.transport import GitHubTransport
from tests.mocks.mock_cache import InMemoryCacheStore
from tests.mocks.mock_factories import (
    API_URL,
    REPO_FULL_NAME,
    make_installation,
    make_repository,
)
from tests.mocks.mock_github import FakeGitHub

CONFIG_PATH = ".github/tickettagger.yml"

STORED_YAML = """\
# labels applied by ticket-tagger
version: 3
team: platform
labels:
  bug:
    text: kind/bug
"""


@pytest.fixture
async def repo_client(app_client: AppClient) -> RepositoryClient:
    client = await app_client.create_installation_client(make_installation())
    return client.create_repository_client(make_repository())


@pytest.mark.unit
class TestSetIssueLabels:
    """Tests for set_issue_labels."""

    @pytest.mark.asyncio
    async def test_puts_labels(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        await repo_client.set_issue_labels(5, ["triage", "bug"])

        (request,) = fake_github.calls("PUT", "/issues/5/labels")
        assert json.loads(request.content) == {"labels": ["triage", "bug"]}
        assert request.headers["Authorization"] == "token ghs_1"
        assert fake_github.issue_labels[(REPO_FULL_NAME, 5)] == ["triage", "bug"]


@pytest.mark.unit
class TestGetConfig:
    """Tests for get_config."""

    @pytest.mark.asyncio
    async def test_missing_file_yields_defaults(self, repo_client: RepositoryClient) -> None:
        document = await repo_client.get_config()
        assert document.exists is False
        assert document.sha == ""
        assert document.config == RepositoryConfig()

    @pytest.mark.asyncio
    async def test_reads_and_completes_stored_config(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        sha = fake_github.put_file(
            REPO_FULL_NAME, CONFIG_PATH, "labels:\n  bug:\n    text: kind/bug\n"
        )
        document = await repo_client.get_config()

        assert document.exists is True
        assert document.sha == sha
        assert document.config.labels["bug"].text == "kind/bug"
        assert document.config.labels["question"].text == "question"

    @pytest.mark.asyncio
    async def test_second_read_is_conditional(
        self,
        repo_client: RepositoryClient,
        fake_github: FakeGitHub,
        cache_store: InMemoryCacheStore,
    ) -> None:
        fake_github.put_file(REPO_FULL_NAME, CONFIG_PATH, "enabled: false\n")
        first = await repo_client.get_config()
        second = await repo_client.get_config()

        assert first == second
        requests = fake_github.calls("GET", "/contents/")
        assert "If-None-Match" in requests[1].headers
        assert len(cache_store.upserts) == 1

    @pytest.mark.asyncio
    async def test_unparseable_yaml_yields_defaults(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        fake_github.put_file(REPO_FULL_NAME, CONFIG_PATH, "labels: [unclosed\n")
        document = await repo_client.get_config()
        assert document.exists is True
        assert document.config == RepositoryConfig()

    @pytest.mark.asyncio
    async def test_directory_is_a_format_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"type": "file", "name": "a.yml"}])

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ConfigFormatError):
                await _direct_client(http).get_config()

    @pytest.mark.asyncio
    async def test_non_base64_is_a_format_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"type": "file", "encoding": "none", "content": ""})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ConfigFormatError):
                await _direct_client(http).get_config()


def _direct_client(http: httpx.AsyncClient) -> RepositoryClient:
    transport = GitHubTransport(
        http, InMemoryCacheStore(), base_url=API_URL, user_agent="Ticket-Tagger"
    )
    return RepositoryClient(
        transport,
        credential=InstallationCredential(token="ghs_x", installation_id=42),
        repository=make_repository(),
        config_file_path=CONFIG_PATH,
    )


@pytest.mark.unit
class TestCreateConfig:
    """Tests for create_config."""

    @pytest.mark.asyncio
    async def test_commits_defaults(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        document = await repo_client.create_config()

        stored = fake_github.file_content(REPO_FULL_NAME, CONFIG_PATH)
        assert stored == document.yaml
        assert yaml.safe_load(stored) == RepositoryConfig().model_dump(mode="json")
        assert document.exists is True
        assert document.sha
        (request,) = fake_github.calls("PUT", "/contents/")
        body = json.loads(request.content)
        assert body["message"] == f"Created {CONFIG_PATH}"
        assert "sha" not in body


@pytest.mark.unit
class TestMergeConfig:
    """Tests for merge_config."""

    @pytest.mark.asyncio
    async def test_applies_edit_and_keeps_unrelated_keys(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        fake_github.put_file(REPO_FULL_NAME, CONFIG_PATH, STORED_YAML)
        base = await repo_client.get_config()
        submitted = {"labels": {"question": {"enabled": False}}}

        merged = await repo_client.merge_config(base, submitted)

        stored = yaml.safe_load(fake_github.file_content(REPO_FULL_NAME, CONFIG_PATH) or "")
        assert stored["team"] == "platform"
        assert stored["labels"]["question"]["enabled"] is False
        assert list(stored) == ["version", "team", "labels"]
        assert merged.config.labels["question"].enabled is False
        assert merged.sha != base.sha
        (request,) = fake_github.calls("PUT", "/contents/")
        body = json.loads(request.content)
        assert body["sha"] == base.sha
        assert body["message"] == f"Updated {CONFIG_PATH}"
        assert base64.b64decode(body["content"]).decode() == merged.yaml

    @pytest.mark.asyncio
    async def test_no_change_returns_base_without_writing(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        fake_github.put_file(REPO_FULL_NAME, CONFIG_PATH, "enabled: true\n")
        base = await repo_client.get_config()

        merged = await repo_client.merge_config(base, base.config.model_dump(mode="json"))

        assert merged == base
        assert fake_github.calls("PUT") == []

    @pytest.mark.asyncio
    async def test_missing_file_is_created(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        base = await repo_client.get_config()
        merged = await repo_client.merge_config(base, {})

        assert merged.exists is True
        assert fake_github.file_content(REPO_FULL_NAME, CONFIG_PATH) is not None
        body = json.loads(fake_github.calls("PUT", "/contents/")[0].content)
        assert "sha" not in body

    @pytest.mark.asyncio
    async def test_stale_sha_conflicts_and_leaves_origin_unchanged(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        fake_github.put_file(REPO_FULL_NAME, CONFIG_PATH, STORED_YAML)
        base = await repo_client.get_config()
        fake_github.put_file(REPO_FULL_NAME, CONFIG_PATH, "enabled: false\n")

        with pytest.raises(ConfigConflictError) as exc_info:
            await repo_client.merge_config(base, {"enabled": True, "version": 4})

        assert exc_info.value.status_code == 409
        assert fake_github.file_content(REPO_FULL_NAME, CONFIG_PATH) == "enabled: false\n"

    @pytest.mark.asyncio
    async def test_invalid_submission_is_rejected(
        self, repo_client: RepositoryClient, fake_github: FakeGitHub
    ) -> None:
        base = await repo_client.get_config()
        with pytest.raises(ConfigValidationError):
            await repo_client.merge_config(base, {"labels": {"bug": {"text": "x" * 51}}})
        assert fake_github.calls("PUT") == []
