"""Per-repository configuration models.

The config lives in the repository as YAML. Every field of a stored
document is optional; whatever is missing is filled from the defaults.
A document that fails validation is discarded as a whole and the
defaults apply.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ticket_tagger_core.constants import (
    CONFIG_SCHEMA_VERSION,
    LABEL_KEYS,
    LABEL_TEXT_MAX_LENGTH,
)

LabelKey = Literal["bug", "enhancement", "question"]


class LabelConfig(BaseModel):
    """Whether a predicted label is applied, and under which text."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = Field(default=True, description="Apply this label when predicted")
    text: str = Field(max_length=LABEL_TEXT_MAX_LENGTH, description="Label name to set")


class RepositoryConfig(BaseModel):
    """Fully populated repository configuration."""

    model_config = ConfigDict(extra="forbid")

    version: int = Field(default=CONFIG_SCHEMA_VERSION, description="Schema version")
    enabled: bool = Field(default=True, description="Master switch for labelling")
    labels: dict[LabelKey, LabelConfig] = Field(
        default_factory=lambda: {
            key: LabelConfig(enabled=True, text=key) for key in LABEL_KEYS
        },
        description="Per-label settings",
    )

    def label(self, key: str) -> LabelConfig | None:
        """Return the settings for a label key, if known."""
        return self.labels.get(key)  # type: ignore[call-overload]


class _LabelPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool | None = None
    text: str | None = Field(default=None, max_length=LABEL_TEXT_MAX_LENGTH)


class _RepositoryConfigPatch(BaseModel):
    """Shape of a stored or submitted document, before defaults."""

    model_config = ConfigDict(extra="forbid")

    version: int | None = None
    enabled: bool | None = None
    labels: dict[LabelKey, _LabelPatch | None] | None = None


class RepositoryConfigDocument(BaseModel):
    """A config as read from (or written to) the repository."""

    yaml: str = Field(default="", description="Raw YAML as stored in the repository")
    config: RepositoryConfig = Field(description="Parsed config with defaults applied")
    sha: str = Field(default="", description="Blob sha for optimistic concurrency")
    exists: bool = Field(default=False, description="Whether the file exists upstream")


def default_config_dict() -> dict[str, Any]:
    """Return a fresh plain-dict copy of the default config."""
    return RepositoryConfig().model_dump(mode="json")


def is_valid_raw_config(raw: Any) -> bool:
    """Check a raw document against the (all-optional) schema."""
    if not isinstance(raw, Mapping):
        return False
    try:
        _RepositoryConfigPatch.model_validate(raw)
    except ValidationError:
        return False
    return True


def defaults_deep(value: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Fill keys that are missing (or null) in ``value`` from ``defaults``, recursively.

    Neither argument is mutated.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(value))
    for key, default in defaults.items():
        current = merged.get(key)
        if current is None:
            merged[key] = copy.deepcopy(default)
        elif isinstance(current, Mapping) and isinstance(default, Mapping):
            merged[key] = defaults_deep(current, default)
    return merged


def config_from_raw(raw: Any) -> RepositoryConfig:
    """Build a full config from a stored document, falling back to defaults."""
    if raw is None or not is_valid_raw_config(raw):
        raw = {}
    return RepositoryConfig.model_validate(defaults_deep(raw, default_config_dict()))
