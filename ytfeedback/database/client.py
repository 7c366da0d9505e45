"""Async PostgreSQL client for evaluation storage.

Owns the SQLAlchemy engine; callers receive the client explicitly instead of
reaching for a module-level engine. Queries are not retried: a failed
statement fails the request that issued it.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ytfeedback.core.errors import DatabaseError

logger = logging.getLogger(__name__)

__all__: list[str] = ["build_async_dsn", "create_engine", "split_sql_statements", "FeedbackDBClient", "DatabaseError"]

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), "schema", "tables.sql")

_SSL_MODES = {"require", "verify-ca", "verify-full", "prefer"}


def build_async_dsn(dsn: str) -> tuple[str, bool]:
    """Rewrite a PostgreSQL URL for the asyncpg dialect.

    ``sslmode`` is not understood by asyncpg, so it is stripped from the query
    string and reported back as a flag for ``connect_args``.

    Args:
        dsn: Connection URL as found in ``DATABASE_URL``

    Returns:
        Tuple of (asyncpg URL, whether the URL asked for SSL)
    """
    if dsn.startswith("postgres://"):
        dsn = dsn.replace("postgres://", "postgresql+asyncpg://", 1)
    elif dsn.startswith("postgresql://"):
        dsn = dsn.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif not dsn.startswith("postgresql+asyncpg://") and "://" in dsn:
        dsn = dsn.replace("://", "+asyncpg://", 1)

    parts = urlsplit(dsn)
    query = parse_qsl(parts.query, keep_blank_values=True)
    ssl_requested = any(key == "sslmode" and value in _SSL_MODES for key, value in query)
    remaining = [(key, value) for key, value in query if key != "sslmode"]
    dsn = urlunsplit(parts._replace(query=urlencode(remaining)))
    return dsn, ssl_requested


def create_engine(dsn: str, ssl: bool = False) -> AsyncEngine:
    """Create an AsyncEngine for *dsn* with pool health checks."""
    dsn, ssl_requested = build_async_dsn(dsn)
    connect_args: dict[str, Any] = {"server_settings": {"timezone": "UTC"}}
    if ssl or ssl_requested:
        connect_args["ssl"] = "require"

    engine = create_async_engine(
        dsn,
        echo=False,
        pool_size=10,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        connect_args=connect_args,
    )
    logger.info(f"Database engine created (ssl={'on' if 'ssl' in connect_args else 'off'})")
    return engine


def split_sql_statements(sql_content: str) -> list[str]:
    """Split a SQL script into statements, skipping comment lines."""
    statements = []
    current_statement = ""

    for line in sql_content.split("\n"):
        line = line.strip()
        if not line or line.startswith("--"):
            continue

        current_statement += line + "\n"
        if line.endswith(";"):
            statements.append(current_statement.strip())
            current_statement = ""

    if current_statement.strip():
        statements.append(current_statement.strip())

    return statements


class FeedbackDBClient:
    """
    Database client for the evaluation tables.

    Either pass a ready AsyncEngine (tests, embedding applications) or a
    connection string; the engine is created lazily from the string.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        *,
        ssl: bool = False,
        engine: AsyncEngine | None = None,
    ):
        """
        Initialize the database client.

        Args:
            connection_string: PostgreSQL URL; falls back to ``DATABASE_URL``
            ssl: Require SSL on connections
            engine: Pre-built engine, used as-is

        Raises:
            ValueError: If neither an engine nor a connection string is available
        """
        self.connection_string = connection_string or os.getenv("DATABASE_URL")
        if engine is None and not self.connection_string:
            raise ValueError(
                "No connection string provided. Set DATABASE_URL environment variable "
                "or pass connection_string parameter."
            )
        self.ssl = ssl
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine(self.connection_string, ssl=self.ssl)
        return self._engine

    async def ping(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def deploy_schema(self) -> dict[str, Any]:
        """Create the evaluation tables and indexes if they do not exist.

        Raises:
            DatabaseError: If a schema statement fails
        """
        with open(SCHEMA_FILE, "r", encoding="utf-8") as f:
            statements = split_sql_statements(f.read())

        try:
            async with self.engine.begin() as conn:
                for stmt in statements:
                    await conn.execute(text(stmt))
        except SQLAlchemyError as e:
            logger.error(f"Schema deployment failed: {e}")
            raise DatabaseError(f"Database error: {e}") from e

        logger.info(f"Schema deployed ({len(statements)} statements)")
        return {
            "status": "success",
            "statements": len(statements),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def close(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            await self._engine.dispose()
