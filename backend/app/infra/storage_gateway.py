"""One logical storage contract over the embedded store and the hosted quiz store.

Services above this layer only talk to :class:`StorageGateway`; which adapter
actually backs an entity kind is decided once, when the gateway is built.
Records are plain dicts keyed by the local column names.

No operation here retries. Failures surface as ``StorageError`` (or
``NotFoundError`` for an id miss) and the caller decides what to do.
"""

from __future__ import annotations

import enum
from contextlib import AbstractContextManager
from typing import Any, Mapping, Sequence

from app.core.errors import StorageError


class EntityKind(str, enum.Enum):
    COURSE = "course"
    LESSON = "lesson"
    PROGRESS = "progress"
    USER = "user"
    QUIZ = "quiz"
    QUESTION = "question"
    OPTION = "option"
    RESULT = "result"


CATALOG_KINDS = frozenset({EntityKind.COURSE, EntityKind.LESSON, EntityKind.PROGRESS})
QUIZ_KINDS = frozenset({EntityKind.USER, EntityKind.QUIZ, EntityKind.QUESTION, EntityKind.OPTION, EntityKind.RESULT})


Record = dict[str, Any]
# Field name, optionally prefixed with "-" for descending order.
OrderBy = Sequence[str]


class StorageAdapter:
    """Interface implemented by each backing store.

    ``filters`` maps field -> value; a list/tuple/set value means "field in values"
    and ``None`` means "field is null".
    """

    def insert(self, kind: EntityKind, fields: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def insert_many(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> list[Any]:
        raise NotImplementedError

    def get_by_id(self, kind: EntityKind, id: Any) -> Record:
        raise NotImplementedError

    def query(
        self,
        kind: EntityKind,
        filters: Mapping[str, Any] | None = None,
        order: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        raise NotImplementedError

    def upsert(self, kind: EntityKind, fields: Mapping[str, Any], key: Sequence[str]) -> None:
        raise NotImplementedError

    def delete(self, kind: EntityKind, id: Any) -> None:
        raise NotImplementedError

    def atomic(self) -> AbstractContextManager:
        """All-or-nothing scope for a sequence of writes on this adapter."""
        raise NotImplementedError


def split_order(order: OrderBy | None) -> list[tuple[str, bool]]:
    """["-created_at", "id"] -> [("created_at", True), ("id", False)]"""
    out: list[tuple[str, bool]] = []
    for item in order or []:
        item = str(item).strip()
        if not item:
            continue
        if item.startswith("-"):
            out.append((item[1:], True))
        else:
            out.append((item, False))
    return out


def is_multi(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


class StorageGateway:
    def __init__(self, adapters: Mapping[EntityKind, StorageAdapter]):
        self._adapters = dict(adapters)

    @classmethod
    def from_stores(cls, *, catalog: StorageAdapter, quiz: StorageAdapter) -> "StorageGateway":
        adapters: dict[EntityKind, StorageAdapter] = {}
        adapters.update({k: catalog for k in CATALOG_KINDS})
        adapters.update({k: quiz for k in QUIZ_KINDS})
        return cls(adapters)

    def adapter_for(self, kind: EntityKind) -> StorageAdapter:
        try:
            return self._adapters[EntityKind(kind)]
        except (KeyError, ValueError):
            raise StorageError(f"No store configured for entity kind '{kind}'")

    def insert(self, kind: EntityKind, fields: Mapping[str, Any]) -> Any:
        return self.adapter_for(kind).insert(kind, fields)

    def insert_many(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> list[Any]:
        if not rows:
            return []
        return self.adapter_for(kind).insert_many(kind, rows)

    def get_by_id(self, kind: EntityKind, id: Any) -> Record:
        return self.adapter_for(kind).get_by_id(kind, id)

    def query(
        self,
        kind: EntityKind,
        filters: Mapping[str, Any] | None = None,
        order: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        return self.adapter_for(kind).query(kind, filters=filters, order=order, limit=limit)

    def upsert(self, kind: EntityKind, fields: Mapping[str, Any], key: Sequence[str]) -> None:
        self.adapter_for(kind).upsert(kind, fields, key)

    def delete(self, kind: EntityKind, id: Any) -> None:
        self.adapter_for(kind).delete(kind, id)

    def atomic(self, kind: EntityKind) -> AbstractContextManager:
        return self.adapter_for(kind).atomic()
