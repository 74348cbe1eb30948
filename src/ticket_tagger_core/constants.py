"""Shared constants for ticket-tagger."""

from __future__ import annotations

# Labels the classifier can predict and repository configs can mention
LABEL_KEYS: tuple[str, ...] = ("bug", "enhancement", "question")

CONFIG_SCHEMA_VERSION = 3
LABEL_TEXT_MAX_LENGTH = 50

GITHUB_ACCEPT = "application/vnd.github.v3+json"
CACHE_NAMESPACE = "github"

# App JWTs are minted per request and live just long enough to be used once
APP_TOKEN_LIFETIME_SECONDS = 30

FASTTEXT_LABEL_PREFIX = "__label__"

STATUS_MESSAGE = "ticket-tagger lives!"

# Allowed for webhook deliveries outside production
LOCAL_WEBHOOK_RANGES = ("127.0.0.0/8", "::1/128")
