"""Repository-level GitHub client."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from typing import Any

import structlog
import yaml

from ticket_tagger_core.exceptions import (
    ConfigFormatError,
    ConfigValidationError,
    ResourceNotFoundError,
)
from ticket_tagger_core.models.github import Repository
from ticket_tagger_core.models.repository_config import (
    RepositoryConfig,
    RepositoryConfigDocument,
    config_from_raw,
    default_config_dict,
    defaults_deep,
    is_valid_raw_config,
)
from ticket_tagger_infra.github.config_merge import (
    apply_changes,
    compute_changes,
    dump_document,
    load_document,
)
from ticket_tagger_infra.github.credentials import InstallationCredential
from ticket_tagger_infra.github.transport import GitHubTransport

logger = structlog.get_logger()


def _encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class RepositoryClient:
    """Acts on one repository with an installation token."""

    def __init__(
        self,
        transport: GitHubTransport,
        *,
        credential: InstallationCredential,
        repository: Repository,
        config_file_path: str,
    ) -> None:
        """Initialize with the transport, a shared credential and the repository."""
        self._transport = transport
        self._credential = credential
        self.repository = repository
        self._config_file_path = config_file_path

    def _url(self, path: str) -> str:
        return self.repository.url.rstrip("/") + path

    def _headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        return self._transport.headers(self._credential.authorization, extra)

    @property
    def _contents_url(self) -> str:
        return self._url(f"/contents/{self._config_file_path}")

    async def set_issue_labels(self, issue_number: int, labels: list[str]) -> None:
        """Replace the labels of an issue.

        See https://docs.github.com/en/rest/issues/labels#set-labels-for-an-issue
        """
        await self._transport.send(
            "PUT",
            self._url(f"/issues/{issue_number}/labels"),
            self._headers({"Content-Type": "application/json"}),
            json={"labels": labels},
        )
        logger.debug(
            "issue_labels_set",
            repository=self.repository.full_name,
            issue=issue_number,
            labels=labels,
        )

    async def get_config(self) -> RepositoryConfigDocument:
        """Read the repository config; a missing file yields the defaults.

        See https://docs.github.com/en/rest/repos/contents#get-repository-content
        """
        try:
            body = await self._transport.get_cached(self._contents_url, self._headers())
        except ResourceNotFoundError:
            return RepositoryConfigDocument(config=RepositoryConfig(), exists=False)

        if not isinstance(body, dict) or body.get("type") != "file":
            msg = f"expected a file at {self._config_file_path}"
            raise ConfigFormatError(msg)
        if body.get("encoding") != "base64":
            msg = f"expected base64 encoding for {self._config_file_path}"
            raise ConfigFormatError(msg)

        try:
            text = base64.b64decode(body.get("content") or "").decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            msg = f"undecodable content in {self._config_file_path}"
            raise ConfigFormatError(msg) from exc

        raw: Any = {}
        if text.strip():
            try:
                raw = yaml.safe_load(text)
            except yaml.YAMLError:
                logger.warning(
                    "repository_config_unparseable",
                    repository=self.repository.full_name,
                )
        return RepositoryConfigDocument(
            yaml=text,
            config=config_from_raw(raw),
            sha=body.get("sha", ""),
            exists=True,
        )

    async def create_config(self) -> RepositoryConfigDocument:
        """Commit the default config file.

        See https://docs.github.com/en/rest/repos/contents#create-or-update-file-contents
        """
        config = RepositoryConfig()
        text = dump_document(config.model_dump(mode="json"))
        response = await self._transport.send(
            "PUT",
            self._contents_url,
            self._headers({"Content-Type": "application/json"}),
            json={"message": f"Created {self._config_file_path}", "content": _encode(text)},
        )
        sha = response.json()["content"]["sha"]
        return RepositoryConfigDocument(yaml=text, config=config, sha=sha, exists=True)

    async def merge_config(
        self,
        base: RepositoryConfigDocument,
        submitted: Mapping[str, Any],
    ) -> RepositoryConfigDocument:
        """Apply a user's edit of ``base`` onto the stored document.

        The write carries ``base.sha``; if the file moved on since ``base``
        was read the origin rejects it and ``ConfigConflictError`` is raised.

        Raises:
            ConfigValidationError: ``submitted`` violates the schema.
            ConfigConflictError: ``base.sha`` is stale.
        """
        if not is_valid_raw_config(submitted):
            msg = "submitted repository config failed schema validation"
            raise ConfigValidationError(msg)
        updated = RepositoryConfig.model_validate(
            defaults_deep(submitted, default_config_dict())
        )

        changes = compute_changes(
            base.config.model_dump(mode="json"), updated.model_dump(mode="json")
        )
        if base.sha and not changes:
            return base

        text = dump_document(apply_changes(load_document(base.yaml), changes))

        body: dict[str, Any] = {
            "message": f"Updated {self._config_file_path}",
            "content": _encode(text),
        }
        if base.sha:
            body["sha"] = base.sha
        response = await self._transport.send(
            "PUT",
            self._contents_url,
            self._headers({"Content-Type": "application/json"}),
            json=body,
        )
        sha = response.json()["content"]["sha"]
        logger.info(
            "repository_config_merged",
            repository=self.repository.full_name,
            changes=len(changes),
        )
        return RepositoryConfigDocument(yaml=text, config=updated, sha=sha, exists=True)
