"""Construction and teardown of the long-lived service objects."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx
import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ticket_tagger_core.config.settings import Settings
from ticket_tagger_core.constants import LOCAL_WEBHOOK_RANGES
from ticket_tagger_core.interfaces.cache import CacheStore
from ticket_tagger_core.interfaces.classifier import Classifier
from ticket_tagger_app.classifier import RemoteModelClassifier
from ticket_tagger_app.webhooks.handler import WebhookHandler
from ticket_tagger_app.webhooks.ip_allowlist import IPAllowlist
from ticket_tagger_infra.cache.codec import PayloadCodec
from ticket_tagger_infra.github.app_client import AppClient
from ticket_tagger_infra.github.transport import GitHubTransport

logger = structlog.get_logger()


@dataclass
class Services:
    """Everything a running server holds on to."""

    settings: Settings
    http: httpx.AsyncClient
    store: CacheStore
    app_client: AppClient
    classifier: Classifier
    handler: WebhookHandler
    allowlist: IPAllowlist | None


@asynccontextmanager
async def open_cache_store(settings: Settings) -> AsyncIterator[CacheStore]:
    """Open the configured cache backend and close it on exit."""
    codec = PayloadCodec(settings.cache_encryption_key.get_secret_value())
    ttl = settings.cache_ttl_seconds

    if settings.cache_backend == "redis":
        from redis.asyncio import Redis

        from ticket_tagger_infra.cache.redis_cache import RedisCacheStore

        redis_store = RedisCacheStore(Redis.from_url(settings.redis_url), codec, ttl)
        try:
            yield redis_store
        finally:
            await redis_store.close()
        return

    if settings.cache_backend == "disk":
        from ticket_tagger_infra.cache.disk_cache import DiskCacheStore

        disk_store = DiskCacheStore(settings.cache_dir, codec, ttl)
        try:
            yield disk_store
        finally:
            disk_store.close()
        return

    from ticket_tagger_infra.cache.db_cache import DBCacheStore
    from ticket_tagger_infra.db.engine import create_engine
    from ticket_tagger_infra.db.session import create_session_factory, init_db

    engine = create_engine(settings)
    try:
        await init_db(engine)
        yield DBCacheStore(create_session_factory(engine), codec, ttl)
    finally:
        await engine.dispose()


def load_private_key(settings: Settings) -> str:
    """Return the app private key, or a throwaway one outside production.

    Production settings refuse to load without a key, so the fallback is
    only reachable in development and test.
    """
    pem = settings.read_private_key()
    if pem is not None:
        return pem
    logger.warning("github_private_key_missing", fallback="ephemeral")
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


async def load_allowlist(settings: Settings, app_client: AppClient) -> IPAllowlist:
    """Build the webhook allowlist from GitHub's published hook ranges."""
    allowlist = IPAllowlist()
    meta = await app_client.get_meta()
    allowlist.add_ranges(meta.get("hooks") or [])
    if settings.environment != "production":
        allowlist.add_ranges(LOCAL_WEBHOOK_RANGES)
    logger.info("webhook_allowlist_loaded", ranges=len(allowlist))
    return allowlist


@asynccontextmanager
async def build_services(settings: Settings) -> AsyncIterator[Services]:
    """Wire the service graph for one server process."""
    async with (
        open_cache_store(settings) as store,
        httpx.AsyncClient(timeout=settings.http_timeout_seconds) as http,
    ):
        transport = GitHubTransport(
            http,
            store,
            base_url=settings.github_api_url,
            user_agent=settings.user_agent,
        )
        app_client = AppClient(
            transport,
            app_id=settings.github_app_id,
            private_key=load_private_key(settings),
            config_file_path=settings.config_file_path,
        )

        classifier = RemoteModelClassifier(
            http, settings.fasttext_model_uri, settings.model_dir
        )
        await classifier.initialize()

        allowlist = None
        if settings.webhook_ip_allowlist:
            allowlist = await load_allowlist(settings, app_client)

        yield Services(
            settings=settings,
            http=http,
            store=store,
            app_client=app_client,
            classifier=classifier,
            handler=WebhookHandler(app_client, classifier),
            allowlist=allowlist,
        )
