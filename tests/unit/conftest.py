"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ticket_tagger_infra.github.app_client import AppClient
from ticket_tagger_infra.github.transport import GitHubTransport
from tests.mocks.mock_cache import FakeClassifier, InMemoryCacheStore
from tests.mocks.mock_factories import API_URL
from tests.mocks.mock_github import FakeGitHub
from tests.mocks.mock_settings import make_settings

CONFIG_PATH = ".github/tickettagger.yml"


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    """One RSA key for the whole session; generation is slow."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return (
        rsa_private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )


@pytest.fixture
def fake_github() -> FakeGitHub:
    """Return a fresh fake GitHub origin with default permissions."""
    return FakeGitHub()


@pytest.fixture
async def http(fake_github: FakeGitHub) -> AsyncGenerator[httpx.AsyncClient, None]:
    """An AsyncClient routed to the fake origin."""
    async with fake_github.client() as client:
        yield client


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def transport(http: httpx.AsyncClient, cache_store: InMemoryCacheStore) -> GitHubTransport:
    return GitHubTransport(http, cache_store, base_url=API_URL, user_agent="Ticket-Tagger")


@pytest.fixture
def app_client(transport: GitHubTransport, private_key_pem: str) -> AppClient:
    return AppClient(
        transport,
        app_id="123",
        private_key=private_key_pem,
        config_file_path=CONFIG_PATH,
    )


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    """Classifier that always answers ("bug", 0.82)."""
    return FakeClassifier()
