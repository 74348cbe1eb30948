"""Installation permission models."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum

import structlog
from pydantic import BaseModel, ConfigDict, Field

logger = structlog.get_logger()


class Resource(StrEnum):
    """Resource categories a GitHub App installation can be granted."""

    ACTIONS = "actions"
    ADMINISTRATION = "administration"
    CHECKS = "checks"
    CONTENTS = "contents"
    DEPLOYMENTS = "deployments"
    ISSUES = "issues"
    METADATA = "metadata"
    PULL_REQUESTS = "pull_requests"
    SINGLE_FILE = "single_file"
    STATUSES = "statuses"


class ResourceAccess(BaseModel):
    """Read/write bits for one resource. Write implies read."""

    model_config = ConfigDict(frozen=True)

    read: bool = False
    write: bool = False

    @classmethod
    def from_level(cls, level: str) -> ResourceAccess:
        """Build from GitHub's "none" / "read" / "write" level string."""
        if level == "write":
            return cls(read=True, write=True)
        if level == "read":
            return cls(read=True, write=False)
        return cls()


NO_ACCESS = ResourceAccess()


class PermissionSet(BaseModel):
    """Permissions attached to an installation access token."""

    model_config = ConfigDict(frozen=True)

    grants: dict[Resource, ResourceAccess] = Field(default_factory=dict)

    @classmethod
    def from_github(cls, permissions: Mapping[str, str] | None) -> PermissionSet:
        """Parse the `permissions` object of an access-token response."""
        grants: dict[Resource, ResourceAccess] = {}
        for name, level in (permissions or {}).items():
            try:
                resource = Resource(name)
            except ValueError:
                logger.debug("permission_ignored", permission=name, level=level)
                continue
            grants[resource] = ResourceAccess.from_level(level)
        return cls(grants=grants)

    def access(self, resource: Resource) -> ResourceAccess:
        """Return the access granted for a resource (none when absent)."""
        return self.grants.get(resource, NO_ACCESS)

    def can_read(self, resource: Resource) -> bool:
        """Whether the grant includes read access."""
        return self.access(resource).read

    def can_write(self, resource: Resource) -> bool:
        """Whether the grant includes write access."""
        return self.access(resource).write
