"""Hosted relational store spoken to over its REST API (PostgREST dialect).

The remote schema predates this service and uses its own table and column
names; ``REMOTE_TABLES`` translates between them and the local field names so
that callers above the gateway never see the difference.

PostgREST has no multi-request transactions, so :meth:`RemoteApiAdapter.atomic`
undoes a failed block with compensating deletes.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Sequence

import httpx

from app.core.config import Settings
from app.core.errors import NotFoundError, StorageError
from app.infra.storage_gateway import EntityKind, OrderBy, Record, StorageAdapter, is_multi, split_order


logger = logging.getLogger(__name__)

# kind -> (table, {local_field: remote_column}); unmapped fields keep their name.
REMOTE_TABLES: dict[EntityKind, tuple[str, dict[str, str]]] = {
    EntityKind.USER: ("usuarios", {"full_name": "nome_completo", "cpf": "cpf", "role": "funcao"}),
    EntityKind.QUIZ: ("avaliacoes", {"title": "titulo", "description": "descricao"}),
    EntityKind.QUESTION: ("questoes", {"quiz_id": "avaliacao_id", "prompt": "pergunta", "position": "ordem"}),
    EntityKind.OPTION: (
        "alternativas",
        {"question_id": "questao_id", "text": "texto", "is_correct": "is_correta", "position": "ordem"},
    ),
    EntityKind.RESULT: (
        "resultados",
        {"quiz_id": "avaliacao_id", "user_id": "usuario_id", "total_questions": "total_questoes"},
    ),
    EntityKind.COURSE: ("courses", {}),
    EntityKind.LESSON: ("lessons", {}),
    EntityKind.PROGRESS: ("progress", {}),
}

# Postgres SQLSTATE for a value the column type cannot parse.
INVALID_TEXT_REPRESENTATION = "22P02"

_CLIENT: httpx.Client | None = None


def build_remote_client(url: str, api_key: str, *, timeout: float | None = 30.0, **kwargs: Any) -> httpx.Client:
    return httpx.Client(
        base_url=f"{url.rstrip('/')}/rest/v1",
        headers={"apikey": api_key, "Authorization": f"Bearer {api_key}"},
        timeout=timeout,
        **kwargs,
    )


def get_remote_client(cfg: Settings) -> httpx.Client:
    """Process-wide connection pool for the remote store, created on first use."""
    global _CLIENT
    if _CLIENT is None:
        url, key = cfg.require_remote()
        _CLIENT = build_remote_client(url, key, timeout=cfg.REMOTE_HTTP_TIMEOUT_SEC)
    return _CLIENT


def close_remote_client() -> None:
    global _CLIENT
    if _CLIENT is not None:
        _CLIENT.close()
        _CLIENT = None


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value)
    if any(ch in text for ch in ',()"'):
        return '"' + text.replace('"', '\\"') + '"'
    return text


class RemoteApiAdapter(StorageAdapter):
    def __init__(self, client: httpx.Client, *, schema: str | None = None, tables: Mapping[EntityKind, tuple[str, dict[str, str]]] | None = None):
        self.client = client
        self.schema = schema
        self.tables = dict(tables or REMOTE_TABLES)
        self._depth = 0
        self._journal: list[tuple[EntityKind, Any]] = []

    # ---- mapping ----

    def _table(self, kind: EntityKind) -> tuple[str, dict[str, str]]:
        try:
            return self.tables[EntityKind(kind)]
        except (KeyError, ValueError):
            raise StorageError(f"Unknown entity kind '{kind}'")

    def _to_remote(self, kind: EntityKind, fields: Mapping[str, Any]) -> dict[str, Any]:
        _, cols = self._table(kind)
        return {cols.get(k, k): v for k, v in fields.items()}

    def _to_local(self, kind: EntityKind, row: Mapping[str, Any]) -> Record:
        _, cols = self._table(kind)
        reverse = {v: k for k, v in cols.items()}
        return {reverse.get(k, k): v for k, v in row.items()}

    def _col(self, kind: EntityKind, field: str) -> str:
        _, cols = self._table(kind)
        return cols.get(field, field)

    # ---- transport ----

    def _request(
        self,
        method: str,
        kind: EntityKind,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        table, _ = self._table(kind)
        headers: dict[str, str] = {}
        if self.schema:
            headers["Accept-Profile" if method == "GET" else "Content-Profile"] = self.schema
        if prefer:
            headers["Prefer"] = prefer
        try:
            resp = self.client.request(method, f"/{table}", params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("remote %s %s failed: %s", method, table, e)
            raise StorageError(f"Remote store unreachable ({table}): {e}") from e

        if resp.status_code >= 400:
            message = resp.text
            pg_code = None
            try:
                body = resp.json()
                if isinstance(body, dict):
                    pg_code = body.get("code")
                    message = str(body.get("message") or body.get("hint") or body)
            except ValueError:
                pass
            if resp.status_code == 400 and pg_code == INVALID_TEXT_REPRESENTATION and method in ("GET", "DELETE"):
                # Malformed key value (e.g. "abc" for a bigint id) cannot match any row.
                raise NotFoundError(f"No {table} row matches: {message}")
            logger.warning("remote %s %s -> %s: %s", method, table, resp.status_code, message)
            raise StorageError(f"Remote store rejected {method} {table} ({resp.status_code}): {message}")

        if not resp.content:
            return []
        try:
            return resp.json()
        except ValueError as e:
            raise StorageError(f"Remote store returned invalid JSON for {table}") from e

    def _filter_params(self, kind: EntityKind, filters: Mapping[str, Any] | None) -> dict[str, str]:
        params: dict[str, str] = {}
        for field, value in (filters or {}).items():
            col = self._col(kind, field)
            if is_multi(value):
                params[col] = "in.(" + ",".join(_format_value(v) for v in value) + ")"
            elif value is None:
                params[col] = "is.null"
            else:
                params[col] = f"eq.{_format_value(value)}"
        return params

    # ---- contract ----

    def insert(self, kind: EntityKind, fields: Mapping[str, Any]) -> Any:
        return self.insert_many(kind, [fields])[0]

    def insert_many(self, kind: EntityKind, rows: Sequence[Mapping[str, Any]]) -> list[Any]:
        payload = [self._to_remote(kind, r) for r in rows]
        body = payload[0] if len(payload) == 1 else payload
        created = self._request("POST", kind, json=body, prefer="return=representation")
        if isinstance(created, dict):
            created = [created]
        ids = [row.get("id") for row in created]
        if self._depth > 0:
            self._journal.extend((EntityKind(kind), i) for i in ids if i is not None)
        if len(created) != len(rows):
            raise StorageError(f"Remote store returned {len(created)} rows for {len(rows)} inserted")
        return ids

    def get_by_id(self, kind: EntityKind, id: Any) -> Record:
        rows = self._request("GET", kind, params={"select": "*", "id": f"eq.{_format_value(id)}", "limit": "1"})
        if not rows:
            raise NotFoundError(f"{EntityKind(kind).value.title()} {id} not found")
        return self._to_local(kind, rows[0])

    def query(
        self,
        kind: EntityKind,
        filters: Mapping[str, Any] | None = None,
        order: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        if any(is_multi(v) and not v for v in (filters or {}).values()):
            return []
        params: dict[str, str] = {"select": "*"}
        params.update(self._filter_params(kind, filters))
        parts = [f"{self._col(kind, f)}.{'desc' if desc else 'asc'}" for f, desc in split_order(order)]
        if parts:
            params["order"] = ",".join(parts)
        if limit is not None:
            params["limit"] = str(int(limit))
        try:
            rows = self._request("GET", kind, params=params)
        except NotFoundError:
            return []
        return [self._to_local(kind, r) for r in rows]

    def upsert(self, kind: EntityKind, fields: Mapping[str, Any], key: Sequence[str]) -> None:
        self._request(
            "POST",
            kind,
            params={"on_conflict": ",".join(self._col(kind, k) for k in key)},
            json=self._to_remote(kind, fields),
            prefer="resolution=merge-duplicates",
        )

    def delete(self, kind: EntityKind, id: Any) -> None:
        rows = self._request("DELETE", kind, params={"id": f"eq.{_format_value(id)}"}, prefer="return=representation")
        if not rows:
            raise NotFoundError(f"{EntityKind(kind).value.title()} {id} not found")

    @contextmanager
    def atomic(self) -> Iterator["RemoteApiAdapter"]:
        if self._depth == 0:
            self._journal = []
        self._depth += 1
        try:
            yield self
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._compensate()
            raise
        self._depth -= 1
        if self._depth == 0:
            self._journal = []

    def _compensate(self) -> None:
        journal, self._journal = self._journal, []
        for kind, row_id in reversed(journal):
            try:
                self.delete(kind, row_id)
                logger.info("compensating delete %s id=%s", kind.value, row_id)
            except (StorageError, NotFoundError) as e:
                # Left orphaned.
                logger.error("compensating delete %s id=%s failed: %s", kind.value, row_id, e)
