"""Issue classifier backed by a fastText model."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

import httpx
import structlog

from ticket_tagger_core.constants import FASTTEXT_LABEL_PREFIX
from ticket_tagger_core.exceptions import ClassifierError
from ticket_tagger_core.models.github import Prediction

logger = structlog.get_logger()

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


class FastTextClassifier:
    """Predicts a label key from issue text with a local fastText model."""

    def __init__(self, model_path: Path | None = None) -> None:
        """Initialize with the model file (loaded by ``initialize``)."""
        self._model_path = model_path
        self._model: Any = None

    async def initialize(self) -> None:
        """Load the model from disk."""
        if self._model is not None:
            msg = "classifier already initialized"
            raise ClassifierError(msg)
        if self._model_path is None:
            msg = "no model path"
            raise ClassifierError(msg)
        import fasttext

        self._model = await asyncio.to_thread(fasttext.load_model, str(self._model_path))
        logger.info("classifier_loaded", model_path=str(self._model_path))

    async def predict(self, text: str) -> Prediction:
        """Return the top label and its probability."""
        if self._model is None:
            msg = "classifier not initialized"
            raise ClassifierError(msg)
        # fastText refuses multi-line input
        line = " ".join(text.split())
        labels, scores = await asyncio.to_thread(self._model.predict, line)
        if not labels:
            return Prediction()
        label = labels[0].removeprefix(FASTTEXT_LABEL_PREFIX)
        return Prediction(label=label, confidence=float(scores[0]))


class RemoteModelClassifier(FastTextClassifier):
    """Downloads the latest published model before loading it.

    The model's ETag is its version; a version already on disk is reused.
    """

    def __init__(self, http: httpx.AsyncClient, model_uri: str, model_dir: Path) -> None:
        """Initialize with a shared HTTP client, model location and local directory."""
        super().__init__(model_path=None)
        self._http = http
        self._model_uri = model_uri
        self._model_dir = model_dir

    async def initialize(self) -> None:
        """Resolve the latest version, download it if needed, then load it."""
        version = await self._fetch_remote_version()
        logger.info("classifier_latest_version", version=version)
        self._model_dir.mkdir(parents=True, exist_ok=True)
        self._model_path = self._model_dir / f"{version}.bin"
        if self._model_path.exists():
            logger.info("classifier_model_cached", model_path=str(self._model_path))
        else:
            await self._download(self._model_path)
        await super().initialize()

    async def _fetch_remote_version(self) -> str:
        response = await self._http.head(self._model_uri, follow_redirects=True)
        response.raise_for_status()
        etag = response.headers.get("ETag")
        if not etag:
            msg = f'no "ETag" header found for {self._model_uri}'
            raise ClassifierError(msg)
        return _UNSAFE_FILENAME_CHARS.sub("", etag) or "model"

    async def _download(self, target: Path) -> None:
        logger.info("classifier_model_downloading", model_uri=self._model_uri)
        partial = target.with_suffix(".part")
        async with self._http.stream("GET", self._model_uri, follow_redirects=True) as response:
            response.raise_for_status()
            with partial.open("wb") as fh:
                async for chunk in response.aiter_bytes():
                    fh.write(chunk)
        partial.replace(target)
