"""PostgreSQL + pgvector implementation of the vector-store abstraction.

Rows live in a single append-only table::

    documents(id SERIAL PRIMARY KEY, content TEXT, embedding VECTOR(dim))

Connections come from a SQLAlchemy ``QueuePool``.  Every public call
checks one out with ``engine.connect()`` and the ``with`` block returns it
to the pool on success and on failure alike.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from pgvector.sqlalchemy import Vector
from sqlalchemy import Column, Integer, MetaData, Table, Text, create_engine, select, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from ragstream.config import settings
from ragstream.errors import StorageError
from ragstream.retrieval.base import VectorStoreBase
from ragstream.retrieval.models import DistanceMetric, Passage

logger = logging.getLogger(__name__)


def documents_table(dimension: int, name: str = "documents", metadata: MetaData | None = None) -> Table:
    """Describe the ``documents`` table for a given embedding dimension."""
    return Table(
        name,
        metadata if metadata is not None else MetaData(),
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("content", Text, nullable=False),
        Column("embedding", Vector(dimension), nullable=False),
    )


def distance_expression(table: Table, metric: DistanceMetric, vector: list[float]):
    """Map *metric* onto the matching pgvector comparator (``<=>``, ``<->``, ``<#>``)."""
    column = table.c.embedding
    if metric is DistanceMetric.COSINE:
        return column.cosine_distance(vector)
    if metric is DistanceMetric.L2:
        return column.l2_distance(vector)
    return column.max_inner_product(vector)


class PgVectorStore(VectorStoreBase):
    """pgvector-backed store.

    Parameters
    ----------
    dimension:
        Width of the ``embedding`` column.
    metric:
        Distance operator used for ``ORDER BY``.
    database_url:
        SQLAlchemy URL (``postgresql+psycopg://...``).
    engine:
        Pre-built engine; overrides *database_url* and the pool settings.
    """

    def __init__(
        self,
        dimension: int = settings.embedding_dim,
        metric: DistanceMetric | str = settings.distance_metric,
        *,
        database_url: str = settings.database_url,
        table_name: str = settings.documents_table,
        pool_size: int = settings.db_pool_size,
        max_overflow: int = settings.db_max_overflow,
        engine: Engine | None = None,
    ) -> None:
        super().__init__(dimension, metric)
        self._engine = engine or create_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
        )
        self._metadata = MetaData()
        self.table = documents_table(dimension, table_name, self._metadata)

    # -- statements -----------------------------------------------------------

    def insert_statement(self, text_: str, vector: list[float]):
        return self.table.insert().values(content=text_, embedding=vector)

    def nearest_statement(self, vector: list[float], k: int):
        distance = distance_expression(self.table, self.metric, vector).label("distance")
        return select(self.table.c.content, distance).order_by(distance.asc()).limit(k)

    # -- VectorStoreBase overrides --------------------------------------------

    def _insert(self, text_: str, vector: list[float]) -> None:
        with self._scope() as conn:
            self._execute_insert(conn, text_, vector)

    def _nearest(self, vector: list[float], k: int) -> list[Passage]:
        with self._scope() as conn:
            return self._execute_nearest(conn, vector, k)

    @contextmanager
    def session(self) -> Iterator[VectorStoreBase]:
        with self._scope() as conn:
            yield _BoundPgVectorStore(self, conn)

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("pgvector health-check failed", exc_info=True)
            return False

    def create_schema(self) -> None:
        """Create the ``vector`` extension and the documents table if missing."""
        try:
            with self._engine.begin() as conn:
                conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                self._metadata.create_all(conn)
        except SQLAlchemyError as exc:
            raise StorageError(f"Schema creation failed: {exc}") from exc
        logger.info("Ensured table %s (dim=%d)", self.table.name, self.dimension)

    def dispose(self) -> None:
        self._engine.dispose()

    # -- internals ------------------------------------------------------------

    @contextmanager
    def _scope(self) -> Iterator[Connection]:
        try:
            with self._engine.connect() as conn:
                yield conn
        except SQLAlchemyError as exc:
            raise StorageError(f"Database error: {exc}") from exc

    def _execute_insert(self, conn: Connection, text_: str, vector: list[float]) -> None:
        try:
            conn.execute(self.insert_statement(text_, vector))
            conn.commit()
        except SQLAlchemyError as exc:
            conn.rollback()
            raise StorageError(f"Insert failed: {exc}") from exc

    def _execute_nearest(self, conn: Connection, vector: list[float], k: int) -> list[Passage]:
        try:
            rows = conn.execute(self.nearest_statement(vector, k)).all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Nearest-neighbour query failed: {exc}") from exc
        return [Passage(text=row.content, distance=float(row.distance)) for row in rows]


class _BoundPgVectorStore(VectorStoreBase):
    """View of a :class:`PgVectorStore` pinned to one checked-out connection.

    Each insert commits on its own, so rows saved before a later failure
    stay saved.
    """

    def __init__(self, parent: PgVectorStore, conn: Connection) -> None:
        super().__init__(parent.dimension, parent.metric)
        self._parent = parent
        self._conn = conn

    def _insert(self, text_: str, vector: list[float]) -> None:
        self._parent._execute_insert(self._conn, text_, vector)

    def _nearest(self, vector: list[float], k: int) -> list[Passage]:
        return self._parent._execute_nearest(self._conn, vector, k)

    def health_check(self) -> bool:
        return not self._conn.closed
