"""External identifier index: the single "have we seen this before" oracle."""

import logging
from typing import Callable, Iterator, Optional

from .events import ExternalIdSetEvent, GraphEvent
from .identifiers import Namespace, index_key, split_index_key

logger = logging.getLogger(__name__)


class ExternalIdIndex:
    """Maps ``"namespace:value"`` keys to internal short uids.

    Append-only: the first writer of a key wins and later writes are no-ops.
    The one exception is ``repoint``, used when author reconciliation deletes
    a duplicate author.
    """

    def __init__(self, emit: Optional[Callable[[GraphEvent], None]] = None):
        self._entries: dict[str, str] = {}
        self._keys_by_uid: dict[str, list[str]] = {}
        self._emit = emit

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def find(self, namespace: Namespace | str, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return self._entries.get(index_key(namespace, value))

    def record(self, namespace: Namespace | str, value: Optional[str], uid: str) -> bool:
        """Register ``value`` for ``uid``; returns True only for a new key."""
        if not value:
            return False
        key = index_key(namespace, value)
        existing = self._entries.get(key)
        if existing is not None:
            if existing != uid:
                logger.debug(f"Index key {key} already maps to {existing}, ignoring {uid}")
            return False

        self._entries[key] = uid
        self._keys_by_uid.setdefault(uid, []).append(key)
        if self._emit:
            self._emit(ExternalIdSetEvent(key=key, uid=uid))
        return True

    def keys_for(self, uid: str) -> list[str]:
        return list(self._keys_by_uid.get(uid, []))

    def value_for(self, uid: str, namespace: Namespace | str) -> Optional[str]:
        """First recorded value of ``namespace`` for ``uid``."""
        ns = namespace.value if isinstance(namespace, Namespace) else namespace
        for key in self._keys_by_uid.get(uid, []):
            key_ns, value = split_index_key(key)
            if key_ns == ns:
                return value
        return None

    def repoint(self, old_uid: str, new_uid: str) -> dict[str, str]:
        """Move every key of ``old_uid`` to ``new_uid``; returns the moved keys.

        Emits nothing: the caller reports the move inside its merge event.
        """
        moved = {}
        for key in self._keys_by_uid.pop(old_uid, []):
            self._entries[key] = new_uid
            self._keys_by_uid.setdefault(new_uid, []).append(key)
            moved[key] = new_uid
        return moved

    def as_dict(self) -> dict[str, str]:
        return dict(self._entries)
