"""Database helper for asserting on application state.

Queries use SQLAlchemy ``text()`` with named parameters. A fresh
connection is checked out for every query and returned immediately.

Usage::

    db = DbClient.from_config(DbConfig(host='localhost', user='qa',
                                       password='secret', database='app'))
    assert db.record_exists('SELECT 1 FROM users WHERE email = :email',
                            {'email': 'qa@example.com'})
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, Engine

from .observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DbConfig:
    """Connection settings; MySQL through PyMySQL unless overridden."""

    host: str
    user: str
    password: str
    database: str
    port: int = 3306
    driver: str = 'mysql+pymysql'

    def url(self) -> URL:
        return URL.create(
            self.driver,
            username=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )


class DbClient:
    """Run queries and compare rows against expectations.

    Args:
        engine: SQLAlchemy engine (any dialect).
        sql_dir: Directory searched by :meth:`run_query_from_file`.
    """

    def __init__(self, engine: Engine, *, sql_dir: Path = Path('sql')) -> None:
        self._engine = engine
        self._sql_dir = sql_dir

    @classmethod
    def from_config(cls, config: DbConfig, *, sql_dir: Path = Path('sql')) -> DbClient:
        return cls(create_engine(config.url()), sql_dir=sql_dir)

    @classmethod
    def from_url(cls, url: str | URL, *, sql_dir: Path = Path('sql')) -> DbClient:
        return cls(create_engine(url), sql_dir=sql_dir)

    def dispose(self) -> None:
        self._engine.dispose()

    def run_query(
        self,
        query: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Execute *query* and return rows as dicts (empty for DML)."""
        with self._engine.begin() as conn:
            result = conn.execute(text(query), dict(params or {}))
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings()]

    def run_query_from_file(
        self,
        file_name: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        query = (self._sql_dir / file_name).read_text(encoding='utf-8')
        return self.run_query(query, params)

    def save_results_to_array(
        self,
        query: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[list[Any]]:
        """Return rows as lists of column values, in column order."""
        return [list(row.values()) for row in self.run_query(query, params)]

    def verify_values(
        self,
        query: str,
        params: Mapping[str, Any] | None,
        expected: Mapping[str, Any],
    ) -> bool:
        """Compare the first row of *query* with *expected* column values.

        Mismatches are logged; returns False on the first one or when no
        row matches.
        """
        rows = self.run_query(query, params)
        if not rows:
            logger.error('db_record_not_found', query=query)
            return False

        record = rows[0]
        for key, value in expected.items():
            actual = record.get(key)
            if actual != value:
                logger.error('db_value_mismatch', column=key, expected=value, actual=actual)
                return False

        logger.info('db_values_matched', columns=list(expected))
        return True

    def record_exists(self, query: str, params: Mapping[str, Any] | None = None) -> bool:
        return bool(self.run_query(query, params))

    def get_record(
        self,
        query: str,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        rows = self.run_query(query, params)
        return rows[0] if rows else None

    def get_records(
        self,
        query: str,
        params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        return self.run_query(query, params)
