from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, StorageError
from app.infra.storage_gateway import EntityKind, OrderBy, Record, StorageAdapter, is_multi, split_order
from app.models.course import Course, Lesson
from app.models.progress import Progress
from app.models.question import QuizOption, QuizQuestion
from app.models.quiz import Quiz
from app.models.quiz_result import QuizResult
from app.models.user import User


logger = logging.getLogger(__name__)

MODELS: dict[EntityKind, type] = {
    EntityKind.COURSE: Course,
    EntityKind.LESSON: Lesson,
    EntityKind.PROGRESS: Progress,
    EntityKind.USER: User,
    EntityKind.QUIZ: Quiz,
    EntityKind.QUESTION: QuizQuestion,
    EntityKind.OPTION: QuizOption,
    EntityKind.RESULT: QuizResult,
}


def _to_record(obj: Any) -> Record:
    return {attr.key: getattr(obj, attr.key) for attr in sa_inspect(obj).mapper.column_attrs}


def _coerce(column: Any, value: Any) -> Any:
    # Path params arrive as strings; integer keys still need to match.
    if not isinstance(value, str):
        return value
    try:
        py_type = column.type.python_type
    except NotImplementedError:
        return value
    if py_type is int:
        try:
            return int(value.strip())
        except ValueError:
            return value
    return value


class SqlAlchemyAdapter(StorageAdapter):
    """Embedded relational store backed by one request-scoped ``Session``.

    Outside :meth:`atomic` every write commits on its own; inside it, writes are
    only flushed and the whole block commits (or rolls back) together.
    """

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

    def _model(self, kind: EntityKind) -> type:
        try:
            return MODELS[EntityKind(kind)]
        except (KeyError, ValueError):
            raise StorageError(f"Unknown entity kind '{kind}'")

    def _column(self, model: type, field: str) -> Any:
        col = getattr(model, field, None)
        if col is None or field not in sa_inspect(model).columns:
            raise StorageError(f"Unknown field '{field}' for {model.__tablename__}")
        return col

    def _pk(self, obj: Any) -> Any:
        identity = sa_inspect(obj).identity
        if identity is None:
            return None
        return identity[0] if len(identity) == 1 else tuple(identity)

    def _finish_write(self) -> None:
        self.db.flush()
        if self._depth == 0:
            self.db.commit()

    def _fail(self, action: str, kind: EntityKind, exc: Exception) -> StorageError:
        if self._depth == 0:
            self.db.rollback()
        logger.warning("%s %s failed: %s", action, getattr(kind, "value", kind), exc)
        return StorageError(f"Failed to {action} {getattr(kind, 'value', kind)}: {exc}")

    def insert(self, kind: EntityKind, fields: Mapping[str, Any]) -> Any:
        return self.insert_many(kind, [fields])[0]

    def insert_many(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> list[Any]:
        model = self._model(kind)
        try:
            objs = [model(**dict(r)) for r in rows]
            self.db.add_all(objs)
            self.db.flush()
            ids = [self._pk(o) for o in objs]
            self._finish_write()
            return ids
        except (SQLAlchemyError, TypeError) as e:
            raise self._fail("insert", kind, e) from e

    def get_by_id(self, kind: EntityKind, id: Any) -> Record:
        model = self._model(kind)
        pk_cols = sa_inspect(model).primary_key
        if isinstance(id, tuple):
            ident = tuple(_coerce(c, v) for c, v in zip(pk_cols, id))
        else:
            ident = _coerce(pk_cols[0], id)
            if isinstance(ident, str) and pk_cols[0].type.python_type is int:
                raise NotFoundError(f"{EntityKind(kind).value.title()} {id} not found")
        try:
            obj = self.db.get(model, ident)
        except SQLAlchemyError as e:
            raise self._fail("load", kind, e) from e
        if obj is None:
            raise NotFoundError(f"{EntityKind(kind).value.title()} {id} not found")
        return _to_record(obj)

    def query(
        self,
        kind: EntityKind,
        filters: Mapping[str, Any] | None = None,
        order: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        model = self._model(kind)
        q = self.db.query(model)
        for field, value in (filters or {}).items():
            col = self._column(model, field)
            if is_multi(value):
                q = q.filter(col.in_([_coerce(col, v) for v in value]))
            elif value is None:
                q = q.filter(col.is_(None))
            else:
                q = q.filter(col == _coerce(col, value))
        for field, desc in split_order(order):
            col = self._column(model, field)
            q = q.order_by(col.desc() if desc else col.asc())
        if limit is not None:
            q = q.limit(int(limit))
        try:
            return [_to_record(o) for o in q.all()]
        except SQLAlchemyError as e:
            raise self._fail("query", kind, e) from e

    def upsert(self, kind: EntityKind, fields: Mapping[str, Any], key: Sequence[str]) -> None:
        model = self._model(kind)
        q = self.db.query(model)
        for field in key:
            col = self._column(model, field)
            q = q.filter(col == _coerce(col, fields.get(field)))
        try:
            row = q.first()
            if row is None:
                self.db.add(model(**dict(fields)))
            else:
                for field, value in fields.items():
                    setattr(row, field, value)
            self._finish_write()
        except (SQLAlchemyError, TypeError) as e:
            raise self._fail("save", kind, e) from e

    def delete(self, kind: EntityKind, id: Any) -> None:
        model = self._model(kind)
        ident = _coerce(sa_inspect(model).primary_key[0], id)
        try:
            obj = self.db.get(model, ident)
            if obj is None:
                raise NotFoundError(f"{EntityKind(kind).value.title()} {id} not found")
            self.db.delete(obj)
            self._finish_write()
        except SQLAlchemyError as e:
            raise self._fail("delete", kind, e) from e

    @contextmanager
    def atomic(self) -> Iterator["SqlAlchemyAdapter"]:
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StorageError(f"Failed to commit transaction: {e}") from e
