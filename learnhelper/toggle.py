"""
User-initiated flag changes on a content store.

Every function returns a new store; the input store is never touched.
Toggling an unknown id is a no-op (a warning is logged).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping

from learnhelper.model import ContentRecord, Store

logger = logging.getLogger(__name__)


def _set_flag(store: Mapping[str, ContentRecord], content_id: str, key: str, value: bool) -> Store:
    new_store = dict(store)
    record = new_store.get(content_id)
    if record is None:
        logger.warning("cannot set %s on unknown content id %r", key, content_id)
        return new_store
    new_store[content_id] = replace(record, **{key: bool(value)})
    return new_store


def set_read(store: Mapping[str, ContentRecord], content_id: str, value: bool) -> Store:
    return _set_flag(store, content_id, "has_read", value)


def set_starred(store: Mapping[str, ContentRecord], content_id: str, value: bool) -> Store:
    return _set_flag(store, content_id, "starred", value)


def set_ignored(store: Mapping[str, ContentRecord], content_id: str, value: bool) -> Store:
    return _set_flag(store, content_id, "ignored", value)


def mark_all_read(store: Mapping[str, ContentRecord]) -> Store:
    """Set has_read on every record; nothing else changes."""
    return {k: replace(c, has_read=True) for k, c in store.items()}
