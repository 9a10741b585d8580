from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Generator, List, Mapping

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    MetaData,
    Table,
    Text,
    Uuid,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .errors import TodoNotFound
from .models import Todo
from .repositories import Repository

logger = logging.getLogger(__name__)

metadata = MetaData()

todos_table = Table(
    "todos",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("user_id", Uuid, nullable=False, index=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("completed", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; Postgres timestamptz is already aware.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLRepository(Repository):
    """
    Relational repository implementing the Repository interface.

    Every statement is built with SQLAlchemy Core, so values always travel as
    bound parameters. Targets Postgres in production; any SQLAlchemy URL works.
    """

    def __init__(self, database_url: str, engine: Engine | None = None) -> None:
        self._engine = engine or create_engine(database_url, pool_pre_ping=True)
        self._init_db()

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _conn(self) -> Generator[Connection, None, None]:
        try:
            with self._engine.begin() as conn:
                yield conn
        except SQLAlchemyError:
            logger.exception("SQL statement failed on %s", self._engine.dialect.name)
            raise

    def _init_db(self) -> None:
        metadata.create_all(self._engine, tables=[todos_table], checkfirst=True)
        logger.debug("todos table ready on %s", self._engine.dialect.name)

    def _row_to_entity(self, row: Mapping[str, Any]) -> Todo:
        return Todo(
            id=row["id"],
            user_id=row["user_id"],
            title=str(row["title"]),
            description=row["description"] or "",
            completed=bool(row["completed"]),
            created_at=_as_utc(row["created_at"]),
            updated_at=_as_utc(row["updated_at"]),
        )

    def create(self, todo: Todo) -> Todo:
        with self._conn() as conn:
            conn.execute(
                insert(todos_table).values(
                    id=todo.id,
                    user_id=todo.user_id,
                    title=todo.title,
                    description=todo.description,
                    completed=todo.completed,
                    created_at=todo.created_at,
                    updated_at=todo.updated_at,
                )
            )
        return todo.copy()

    def get(self, todo_id: uuid.UUID) -> Todo:
        with self._conn() as conn:
            row = conn.execute(
                select(todos_table).where(todos_table.c.id == todo_id)
            ).mappings().first()
        if row is None:
            raise TodoNotFound()
        return self._row_to_entity(row)

    def list_by_user(self, user_id: uuid.UUID) -> List[Todo]:
        with self._conn() as conn:
            rows = conn.execute(
                select(todos_table)
                .where(todos_table.c.user_id == user_id)
                .order_by(todos_table.c.created_at.desc())
            ).mappings().all()
        return [self._row_to_entity(r) for r in rows]

    def update(self, todo: Todo) -> Todo:
        with self._conn() as conn:
            result = conn.execute(
                update(todos_table)
                .where(todos_table.c.id == todo.id)
                .values(
                    title=todo.title,
                    description=todo.description,
                    completed=todo.completed,
                    updated_at=todo.updated_at,
                )
            )
            if result.rowcount == 0:
                raise TodoNotFound()
        return todo.copy()

    def delete(self, todo_id: uuid.UUID) -> None:
        with self._conn() as conn:
            result = conn.execute(delete(todos_table).where(todos_table.c.id == todo_id))
            if result.rowcount == 0:
                raise TodoNotFound()
