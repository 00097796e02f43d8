"""
db.store - Table-style data access used by the import pipeline.

The import treats persistence as a remote collaborator: rows go in and
come out as plain dicts, filters are simple predicates, and server-side
work is reached through named functions (``invoke``).  Every write runs
inside a SAVEPOINT so one failed statement does not poison the session
for the rows that follow.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from sqlalchemy import select as sa_select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import TABLES, Base

logger = logging.getLogger(__name__)

StoreFunction = Callable[[Session, dict], dict]

_FUNCTIONS: dict[str, StoreFunction] = {}


class StoreError(Exception):
    """Raised when a store call fails (unknown table, DB error, bad function)."""
    pass


def register_function(name: str):
    """Decorator: expose ``fn(session, payload) -> dict`` as ``invoke(name)``."""
    def _wrap(fn: StoreFunction) -> StoreFunction:
        _FUNCTIONS[name] = fn
        return fn
    return _wrap


def registered_functions() -> list[str]:
    return sorted(_FUNCTIONS)


class Store:

    def __init__(self, session: Session):
        self.session = session

    # ── Read ───────────────────────────────────────────────────────────

    def select(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, Iterable] | None = None,
        order_by: str | None = None,
        desc: bool = False,
        limit: int | None = None,
    ) -> list[dict]:
        model = self._model(table)
        stmt = self._filtered(sa_select(model), model, eq, in_)
        if order_by:
            col = self._column(model, order_by)
            stmt = stmt.order_by(col.desc() if desc else col.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return [obj.to_dict() for obj in self.session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise StoreError(f"select {table} failed: {exc}") from exc

    def select_one(self, table: str, **filters) -> dict | None:
        rows = self.select(table, limit=1, **filters)
        return rows[0] if rows else None

    # ── Write ──────────────────────────────────────────────────────────

    def insert(self, table: str, values: dict) -> dict:
        model = self._model(table)
        try:
            with self.session.begin_nested():
                obj = model(**values)
                self.session.add(obj)
            return obj.to_dict()
        except (SQLAlchemyError, TypeError) as exc:
            raise StoreError(f"insert into {table} failed: {exc}") from exc

    def update(self, table: str, values: dict, *, eq: dict[str, Any]) -> list[dict]:
        model = self._model(table)
        stmt = self._filtered(sa_select(model), model, eq, None)
        try:
            with self.session.begin_nested():
                objs = list(self.session.scalars(stmt))
                for obj in objs:
                    for key, val in values.items():
                        self._column(model, key)
                        setattr(obj, key, val)
            return [obj.to_dict() for obj in objs]
        except SQLAlchemyError as exc:
            raise StoreError(f"update {table} failed: {exc}") from exc

    def upsert(self, table: str, values: dict, *, on: str = "id") -> dict:
        """Insert, or update the row whose ``on`` column matches."""
        model = self._model(table)
        key = values.get(on)
        if key is None:
            return self.insert(table, values)
        stmt = sa_select(model).where(self._column(model, on) == key)
        try:
            with self.session.begin_nested():
                obj = self.session.scalars(stmt).first()
                if obj is None:
                    obj = model(**values)
                    self.session.add(obj)
                else:
                    for k, v in values.items():
                        setattr(obj, k, v)
            return obj.to_dict()
        except (SQLAlchemyError, TypeError) as exc:
            raise StoreError(f"upsert into {table} failed: {exc}") from exc

    def delete(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: dict[str, Iterable] | None = None,
    ) -> int:
        if not eq and not in_:
            raise StoreError(f"refusing unfiltered delete on {table}")
        model = self._model(table)
        stmt = self._filtered(sa_select(model), model, eq, in_)
        try:
            with self.session.begin_nested():
                objs = list(self.session.scalars(stmt))
                for obj in objs:
                    self.session.delete(obj)
            return len(objs)
        except SQLAlchemyError as exc:
            raise StoreError(f"delete from {table} failed: {exc}") from exc

    # ── Functions ──────────────────────────────────────────────────────

    def invoke(self, name: str, payload: dict) -> dict:
        fn = _FUNCTIONS.get(name)
        if fn is None:
            raise StoreError(f"unknown function '{name}'")
        try:
            with self.session.begin_nested():
                return fn(self.session, payload)
        except Exception as exc:
            # any exception raised by a function surfaces as StoreError
            raise StoreError(f"function {name} failed: {exc}") from exc

    # ── Private helpers ────────────────────────────────────────────────

    @staticmethod
    def _model(table: str) -> type[Base]:
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"unknown table '{table}'") from None

    @staticmethod
    def _column(model: type[Base], name: str):
        col = getattr(model, name, None)
        if col is None or name not in model.__table__.columns:
            raise StoreError(f"unknown column {model.__tablename__}.{name}")
        return col

    def _filtered(self, stmt, model, eq, in_):
        for name, val in (eq or {}).items():
            stmt = stmt.where(self._column(model, name) == val)
        for name, vals in (in_ or {}).items():
            stmt = stmt.where(self._column(model, name).in_(list(vals)))
        return stmt
