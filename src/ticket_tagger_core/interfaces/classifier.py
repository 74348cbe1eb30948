"""Abstract classifier interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ticket_tagger_core.models.github import Prediction


@runtime_checkable
class Classifier(Protocol):
    """Scored-prediction oracle for issue text."""

    async def initialize(self) -> None:
        """Load the model. Must be awaited once before predicting."""
        ...

    async def predict(self, text: str) -> Prediction:
        """Return the most likely label key and its confidence."""
        ...
