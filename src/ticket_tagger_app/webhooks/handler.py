"""Routes verified webhook deliveries to their handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import structlog

from ticket_tagger_core.models.github import Installation, Issue, Repository
from ticket_tagger_core.models.permissions import Resource
from ticket_tagger_core.models.repository_config import RepositoryConfig

if TYPE_CHECKING:
    from ticket_tagger_core.interfaces.classifier import Classifier
    from ticket_tagger_infra.github.app_client import AppClient
    from ticket_tagger_infra.github.installation_client import InstallationClient

logger = structlog.get_logger()

EventHandler = Callable[[dict[str, Any]], Awaitable[None]]


class WebhookHandler:
    """Handles GitHub App deliveries keyed by ``"{event}.{action}"``."""

    def __init__(self, app_client: AppClient, classifier: Classifier) -> None:
        """Initialize with the app client and a loaded classifier."""
        self._app_client = app_client
        self._classifier = classifier
        self._routes: dict[str, EventHandler] = {
            "issues.opened": self.handle_issue_opened,
            "installation.created": self.handle_installation_created,
        }

    async def dispatch(self, event: str, payload: dict[str, Any]) -> bool:
        """Run the handler for a delivery. Returns whether one was found."""
        key = f"{event}.{payload.get('action')}"
        handler = self._routes.get(key)
        if handler is None:
            logger.debug("webhook_ignored", route=key)
            return False
        await handler(payload)
        return True

    async def handle_issue_opened(self, payload: dict[str, Any]) -> None:
        """Classify a new issue and label it."""
        installation = Installation.model_validate(payload["installation"])
        repository = Repository.model_validate(payload["repository"])
        issue = Issue.model_validate(payload["issue"])

        client = await self._app_client.create_installation_client(installation)
        if not client.can_write(Resource.ISSUES):
            logger.info(
                "issue_skipped_no_permission",
                installation_id=installation.id,
                repository=repository.full_name,
            )
            return

        try:
            await self._label_issue(client, repository, issue)
        except Exception:
            try:
                await client.revoke_access_token()
            except Exception:
                logger.exception(
                    "installation_token_revoke_failed",
                    installation_id=installation.id,
                )
            raise
        await client.revoke_access_token()

    async def _label_issue(
        self,
        client: InstallationClient,
        repository: Repository,
        issue: Issue,
    ) -> None:
        repo_client = client.create_repository_client(repository)
        if client.can_read(Resource.SINGLE_FILE):
            config = (await repo_client.get_config()).config
        else:
            config = RepositoryConfig()

        if not config.enabled:
            logger.info("issue_skipped_disabled", repository=repository.full_name)
            return

        prediction = await self._classifier.predict(issue.text)
        logger.info(
            "issue_classified",
            repository=repository.full_name,
            issue=issue.number,
            label=prediction.label,
            confidence=prediction.confidence,
        )
        if prediction.label is None or prediction.confidence <= 0:
            return

        label = config.label(prediction.label)
        if label is None or not label.enabled:
            return

        labels = issue.label_names
        if label.text not in labels:
            labels.append(label.text)
        await repo_client.set_issue_labels(issue.number, labels)

    async def handle_installation_created(self, payload: dict[str, Any]) -> None:
        """Record a new installation."""
        installation = payload.get("installation") or {}
        account = installation.get("account") or {}
        logger.info(
            "app_installed",
            installation_id=installation.get("id"),
            account=account.get("login"),
            repositories=len(payload.get("repositories") or []),
        )
