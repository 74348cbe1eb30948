"""Domain models for ticket-tagger."""

from ticket_tagger_core.models.cache import CacheRecord
from ticket_tagger_core.models.github import (
    Installation,
    Issue,
    IssueLabel,
    Prediction,
    Repository,
)
from ticket_tagger_core.models.permissions import (
    PermissionSet,
    Resource,
    ResourceAccess,
)
from ticket_tagger_core.models.repository_config import (
    LabelConfig,
    RepositoryConfig,
    RepositoryConfigDocument,
)

__all__ = [
    "CacheRecord",
    "Installation",
    "Issue",
    "IssueLabel",
    "LabelConfig",
    "PermissionSet",
    "Prediction",
    "Repository",
    "RepositoryConfig",
    "RepositoryConfigDocument",
    "Resource",
    "ResourceAccess",
]
