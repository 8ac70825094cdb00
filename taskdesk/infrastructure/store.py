"""
Record store - generic table-oriented access over SQLAlchemy.

Records go in and come out as plain dicts, tables are addressed by name:

    store.find("tasks", {"parent_task_id": 7, "due_date": d}, order=["-due_date"], limit=1)
    store.insert("tasks", {...})
    store.update("tasks", {"id": 7}, {"is_paused": True})
    store.delete("tasks", {"id": 7})

Filter keys are column names with an optional operator suffix:
    col          equality (None -> IS NULL)
    col__ne      not equal (None -> IS NOT NULL)
    col__gt / col__gte / col__lt / col__lte
    col__isnull  True -> IS NULL, False -> IS NOT NULL

Ordering puts NULLs last in both directions.

Every write commits immediately. SQLAlchemy errors are rolled back
and re-raised as StoreError.
"""
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.infrastructure.db.models import TaskModel, EngineRunModel


TABLES = {
    "tasks": TaskModel,
    "engine_runs": EngineRunModel,
}

_OPERATORS = {"ne", "gt", "gte", "lt", "lte", "isnull"}


class StoreError(Exception):
    """Raised when a record store operation fails"""
    pass


def _model_for(table: str):
    model = TABLES.get(table)
    if model is None:
        raise StoreError(f"unknown table: {table}")
    return model


def _column(model, name: str):
    if name not in model.__table__.columns:
        raise StoreError(f"unknown column: {model.__tablename__}.{name}")
    return getattr(model, name)


def _clause(model, key: str, value: Any):
    name, _, op = key.partition("__")
    if op and op not in _OPERATORS:
        raise StoreError(f"unknown filter operator: {op}")
    col = _column(model, name)

    if not op:
        return col.is_(None) if value is None else col == value
    if op == "ne":
        return col.isnot(None) if value is None else col != value
    if op == "isnull":
        return col.is_(None) if value else col.isnot(None)
    if op == "gt":
        return col > value
    if op == "gte":
        return col >= value
    if op == "lt":
        return col < value
    return col <= value


def _to_dict(row) -> dict[str, Any]:
    return {c.name: getattr(row, c.name) for c in row.__table__.columns}


class RecordStore:
    def __init__(self, db: Session):
        self.db = db

    def _query(self, model, filters: dict[str, Any] | None):
        query = self.db.query(model)
        for key, value in (filters or {}).items():
            query = query.filter(_clause(model, key, value))
        return query

    def find(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        order: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model = _model_for(table)
        query = self._query(model, filters)
        for entry in order or []:
            if entry.startswith("-"):
                query = query.order_by(_column(model, entry[1:]).desc().nullslast())
            else:
                query = query.order_by(_column(model, entry).asc().nullslast())
        if limit is not None:
            query = query.limit(limit)
        try:
            return [_to_dict(row) for row in query.all()]
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(str(e)) from e

    def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        model = _model_for(table)
        for key in record:
            _column(model, key)
        values = dict(record)
        if "created_at" in model.__table__.columns and values.get("created_at") is None:
            values["created_at"] = datetime.now(timezone.utc)
        row = model(**values)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(str(e)) from e
        return _to_dict(row)

    def update(self, table: str, filters: dict[str, Any], patch: dict[str, Any]) -> int:
        model = _model_for(table)
        values = {_column(model, key).key: value for key, value in patch.items()}
        try:
            count = self._query(model, filters).update(values, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(str(e)) from e
        return count

    def delete(self, table: str, filters: dict[str, Any]) -> int:
        model = _model_for(table)
        if not filters:
            raise StoreError(f"refusing unfiltered delete on {table}")
        try:
            count = self._query(model, filters).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(str(e)) from e
        return count
