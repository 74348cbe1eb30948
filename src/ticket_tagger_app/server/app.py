"""FastAPI application exposing the webhook endpoint."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request, status

from ticket_tagger_core.config.settings import Settings
from ticket_tagger_core.constants import STATUS_MESSAGE
from ticket_tagger_core.exceptions import MalformedSignatureError, SignatureMismatchError
from ticket_tagger_app.observability import (
    bind_delivery_context,
    clear_delivery_context,
    configure_logging,
)
from ticket_tagger_app.server.services import Services, build_services
from ticket_tagger_app.webhooks.signature import verify_signature

logger = structlog.get_logger()

ServicesFactory = Callable[[Settings], AbstractAsyncContextManager[Services]]


def create_app(
    settings: Settings | None = None,
    services_factory: ServicesFactory = build_services,
) -> FastAPI:
    """Create the application; services are built on startup."""
    settings = settings or Settings()  # type: ignore[call-arg]

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings)
        logger.info("server_starting", environment=settings.environment)
        async with services_factory(settings) as services:
            app.state.services = services
            yield
        logger.info("server_stopped")

    app = FastAPI(title="ticket-tagger", lifespan=lifespan)

    @app.get("/status")
    async def get_status() -> dict[str, str]:
        return {"message": STATUS_MESSAGE}

    @app.post("/webhook")
    async def receive_webhook(request: Request) -> dict[str, bool]:
        """Verify and dispatch one GitHub delivery."""
        services: Services = request.app.state.services

        client_host = request.client.host if request.client else None
        if services.allowlist is not None and not services.allowlist.contains(client_host):
            logger.warning("webhook_rejected_address", client_host=client_host)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")

        body = await request.body()
        try:
            verify_signature(
                body, settings.github_secret.get_secret_value(), request.headers
            )
        except MalformedSignatureError as exc:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        except SignatureMismatchError as exc:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

        event = request.headers.get("X-GitHub-Event")
        if not event:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="missing X-GitHub-Event")
        try:
            payload: Any = json.loads(body)
        except ValueError as exc:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="invalid JSON") from exc
        if not isinstance(payload, dict):
            raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="invalid payload")

        bind_delivery_context(request.headers.get("X-GitHub-Delivery"), event)
        try:
            await services.handler.dispatch(event, payload)
        finally:
            clear_delivery_context()
        return {"ok": True}

    return app
