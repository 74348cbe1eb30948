"""Three-way merge of repository config edits.

An edit is the difference between the config the user last saw and the
config they submitted. That difference is flattened into a list of
``ConfigChange`` triples and replayed onto the raw document currently
stored in the repository, so keys the user never touched keep their
stored form.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import yaml

_MISSING = object()


class ChangeOp(StrEnum):
    """Kind of change at one path."""

    ADD = "add"
    DELETE = "delete"
    UPDATE = "update"


@dataclass(frozen=True)
class ConfigChange:
    """One leaf-level change: where, what kind, and the new value."""

    path: tuple[str, ...]
    op: ChangeOp
    value: Any = None


def _added(old: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, Any]:
    diff: dict[str, Any] = {}
    for key, value in new.items():
        previous = old.get(key, _MISSING)
        if previous is _MISSING:
            diff[key] = value
        elif isinstance(previous, Mapping) and isinstance(value, Mapping):
            nested = _added(previous, value)
            if nested:
                diff[key] = nested
    return diff


def _deleted(old: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, Any]:
    diff: dict[str, Any] = {}
    for key, value in old.items():
        current = new.get(key, _MISSING)
        if current is _MISSING:
            diff[key] = None
        elif isinstance(value, Mapping) and isinstance(current, Mapping):
            nested = _deleted(value, current)
            if nested:
                diff[key] = nested
    return diff


def _updated(old: Mapping[str, Any], new: Mapping[str, Any]) -> dict[str, Any]:
    diff: dict[str, Any] = {}
    for key, value in new.items():
        previous = old.get(key, _MISSING)
        if previous is _MISSING:
            continue
        if isinstance(previous, Mapping) and isinstance(value, Mapping):
            nested = _updated(previous, value)
            if nested:
                diff[key] = nested
        elif previous != value:
            diff[key] = value
    return diff


def flatten(tree: Mapping[str, Any], op: ChangeOp) -> list[ConfigChange]:
    """Flatten a diff tree into leaf changes, pre-order depth-first."""
    changes: list[ConfigChange] = []
    stack: list[tuple[tuple[str, ...], Any]] = [((), tree)]
    while stack:
        path, value = stack.pop()
        # an empty mapping below the root is itself a value to set
        if isinstance(value, Mapping) and (value or not path):
            for key, child in reversed(list(value.items())):
                stack.append(((*path, key), child))
            continue
        changes.append(ConfigChange(path=path, op=op, value=value))
    return changes


def compute_changes(
    old: Mapping[str, Any], new: Mapping[str, Any]
) -> list[ConfigChange]:
    """All changes turning ``old`` into ``new``: additions, deletions, updates."""
    return [
        *flatten(_added(old, new), ChangeOp.ADD),
        *flatten(_deleted(old, new), ChangeOp.DELETE),
        *flatten(_updated(old, new), ChangeOp.UPDATE),
    ]


def _parent_of(
    document: dict[str, Any], path: tuple[str, ...], *, create: bool
) -> dict[str, Any] | None:
    node = document
    for key in path:
        child = node.get(key)
        if not isinstance(child, dict):
            if not create:
                return None
            child = {}
            node[key] = child
        node = child
    return node


def apply_changes(
    document: Mapping[str, Any], changes: list[ConfigChange]
) -> dict[str, Any]:
    """Replay changes onto a copy of ``document`` in a single pass."""
    result: dict[str, Any] = copy.deepcopy(dict(document))
    for change in changes:
        *parents, leaf = change.path
        if change.op is ChangeOp.DELETE:
            parent = _parent_of(result, tuple(parents), create=False)
            if parent is not None:
                parent.pop(leaf, None)
            continue
        parent = _parent_of(result, tuple(parents), create=True)
        parent[leaf] = copy.deepcopy(change.value)  # type: ignore[index]
    return result


def load_document(text: str) -> dict[str, Any]:
    """Parse stored YAML into a mapping; anything else becomes empty."""
    if not text.strip():
        return {}
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError:
        return {}
    return document if isinstance(document, dict) else {}


def dump_document(document: Mapping[str, Any]) -> str:
    """Serialize a mapping back to YAML, keeping key order."""
    return yaml.safe_dump(
        dict(document), sort_keys=False, default_flow_style=False, allow_unicode=True
    )
