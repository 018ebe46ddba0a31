import logging
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

from dal.tracing import trace_query_operation
from dal.transaction import TransactionGuard

logger = logging.getLogger(__name__)


class SqliteDriver:
    """Synchronous SQLite driver for local development and tests.

    The connection runs in autocommit mode; transactions are opened
    explicitly through ``begin_transaction``.
    """

    provider = "sqlite"

    def __init__(self, db_path: str = ":memory:") -> None:
        """Open the SQLite database at ``db_path``."""
        self._db_path = db_path or ":memory:"
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            self._db_path, isolation_level=None
        )
        self._conn.row_factory = sqlite3.Row
        self._last_insert_id: Optional[int] = None
        self._transaction = TransactionGuard(self.provider)

    @property
    def in_transaction(self) -> bool:
        """Return True while an explicit transaction is open."""
        return self._transaction.active

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("SQLite connection is closed.")
        return self._conn

    def _run(self, sql: str, bindings: Optional[Sequence[Any]]) -> sqlite3.Cursor:
        params = list(bindings or [])
        logger.debug("sqlite: %s | %d binding(s)", sql, len(params))
        cursor = self._connection().execute(sql, params)
        if cursor.lastrowid:
            self._last_insert_id = cursor.lastrowid
        return cursor

    def statement(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        def _op() -> List[Dict[str, Any]]:
            cursor = self._run(sql, bindings)
            if cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]

        return trace_query_operation("dal.query.statement", self.provider, sql, _op)

    def execute(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> bool:
        def _op() -> bool:
            self._run(sql, bindings)
            return True

        return trace_query_operation("dal.query.execute", self.provider, sql, _op)

    def last_insert_id(self) -> Optional[int]:
        return self._last_insert_id

    def begin_transaction(self) -> bool:
        self._transaction.enter()
        self._connection().execute("BEGIN")
        return True

    def commit(self) -> bool:
        self._transaction.leave("commit")
        self._connection().execute("COMMIT")
        return True

    def rollback(self) -> bool:
        self._transaction.leave("rollback")
        self._connection().execute("ROLLBACK")
        return True

    def close(self) -> None:
        """Close the connection; safe to call twice."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
