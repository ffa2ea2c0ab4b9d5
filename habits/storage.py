"""
Key-value stores the single-habit repository is built on.

A store maps string keys to JSON-ready values with last-write-wins
semantics. Writes that would push the store past `max_bytes` (measured on
the serialized values) are rejected with STORAGE_QUOTA_EXCEEDED and leave
the store unchanged.
"""
import contextlib
import json
import logging
from typing import Any, ContextManager, Optional, Protocol

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction

from habits.errors import ErrorKind, HabitError
from habits.models import StoredItem

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def remove(self, key: str) -> None:
        ...

    def clear(self) -> None:
        ...

    def atomic(self) -> ContextManager:
        """Scope in which a read-modify-write of several keys is not interleaved."""
        ...


def _serialize(value: Any) -> str:
    return json.dumps(value, cls=DjangoJSONEncoder)


def _check_quota(max_bytes: Optional[int], key: str, used_by_others: int, serialized: str) -> None:
    if max_bytes is None:
        return
    needed = used_by_others + len(serialized.encode("utf-8"))
    if needed > max_bytes:
        logger.warning("Store write for %r rejected: %d bytes needed, quota is %d", key, needed, max_bytes)
        raise HabitError(ErrorKind.STORAGE_QUOTA_EXCEEDED)


class InMemoryStore:
    """Process-local store; each instance owns its own data."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._items: dict[str, str] = {}

    def get(self, key: str) -> Optional[Any]:
        raw = self._items.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        serialized = _serialize(value)
        used = sum(len(v.encode("utf-8")) for k, v in self._items.items() if k != key)
        _check_quota(self.max_bytes, key, used, serialized)
        self._items[key] = serialized

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def atomic(self) -> ContextManager:
        return contextlib.nullcontext()

    def __len__(self) -> int:
        return len(self._items)


class DatabaseStore:
    """Durable store backed by the store_items table."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes

    def get(self, key: str) -> Optional[Any]:
        item = StoredItem.objects.filter(key=key).only("value").first()
        return None if item is None else item.value

    @transaction.atomic
    def set(self, key: str, value: Any) -> None:
        serialized = _serialize(value)
        if self.max_bytes is not None:
            used = sum(
                len(_serialize(v).encode("utf-8"))
                for v in StoredItem.objects.exclude(key=key).values_list("value", flat=True)
            )
            _check_quota(self.max_bytes, key, used, serialized)
        StoredItem.objects.update_or_create(key=key, defaults={"value": json.loads(serialized)})

    def remove(self, key: str) -> None:
        StoredItem.objects.filter(key=key).delete()

    def clear(self) -> None:
        StoredItem.objects.all().delete()

    def atomic(self) -> ContextManager:
        return transaction.atomic()
