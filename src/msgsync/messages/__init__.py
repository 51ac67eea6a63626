"""Message models and identity tracking."""

from .identity import IndexTracker, message_key
from .models import CatalogItem, FileRef, Message, Scope, item_key

__all__ = [
    "CatalogItem",
    "FileRef",
    "IndexTracker",
    "Message",
    "Scope",
    "item_key",
    "message_key",
]
