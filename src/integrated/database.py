"""
Row-existence lookups for see_in_database().

The only query the emulator needs is "how many rows in this table match
these column values". Any DB-API connection works; sqlite connections can
be built straight from the project configuration.
"""

import re
import sqlite3
from typing import Any, Dict, List

import structlog

from .config import DatabaseConfig
from .exceptions import ConfigError

logger = structlog.get_logger(__name__)

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class DatabaseAdapter:
    """
    Counts rows matching a set of column values.

    Args:
        connection: Any DB-API 2.0 connection
        placeholder: Parameter marker for the driver ("?" for sqlite3,
            "%s" for psycopg/pymysql)
    """

    def __init__(self, connection, placeholder: str = "?"):
        self.connection = connection
        self.placeholder = placeholder

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "DatabaseAdapter":
        if config.connection != "sqlite":
            raise ConfigError(
                f"Unsupported connection '{config.connection}'. "
                "Pass a DatabaseAdapter built on your own DB-API connection instead."
            )
        return cls(sqlite3.connect(config.database, **config.options))

    def row_count(self, table: str, fields: Dict[str, Any]) -> int:
        """Number of rows in table whose columns equal the given values."""
        self._check_identifier(table)

        clauses: List[str] = []
        params: List[Any] = []
        for column, value in fields.items():
            self._check_identifier(column)
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = {self.placeholder}")
                params.append(value)

        sql = f"SELECT COUNT(*) FROM {table}"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)

        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params)
            (count,) = cursor.fetchone()
        finally:
            cursor.close()

        logger.debug("row_count", table=table, fields=list(fields), count=count)
        return int(count)

    def close(self) -> None:
        self.connection.close()

    @staticmethod
    def _check_identifier(name: str) -> None:
        if not IDENTIFIER.match(name):
            raise ValueError(f"'{name}' is not a valid table or column name.")
