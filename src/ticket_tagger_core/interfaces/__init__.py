"""Public interface re-exports for ticket_tagger_core."""

from ticket_tagger_core.interfaces.cache import CacheStore
from ticket_tagger_core.interfaces.classifier import Classifier

__all__ = [
    "CacheStore",
    "Classifier",
]
