import logging
from typing import Any, Dict, List, Optional, Sequence

import pymysql
import pymysql.cursors

from dal.config import DatabaseConfig
from dal.mysql.param_translation import translate_qmark_params_to_mysql
from dal.tracing import trace_query_operation
from dal.transaction import TransactionGuard

logger = logging.getLogger(__name__)


class MysqlDriver:
    """Synchronous MySQL/MariaDB driver using pymysql.

    SQL is written with ``?`` placeholders and translated to pymysql's
    ``%s`` style before execution. The connection runs in autocommit mode.
    """

    provider = "mysql"

    def __init__(self, config: DatabaseConfig) -> None:
        """Open a connection using the server settings in ``config``."""
        config.require_server_settings()
        self._config = config
        self._conn: Optional[Any] = pymysql.connect(
            host=config.host,
            port=config.port,
            user=config.user,
            password=config.password or "",
            database=config.database,
            charset=config.charset,
            autocommit=True,
            cursorclass=pymysql.cursors.DictCursor,
        )
        self._last_insert_id: Optional[int] = None
        self._transaction = TransactionGuard(self.provider)

    @property
    def in_transaction(self) -> bool:
        return self._transaction.active

    def _connection(self) -> Any:
        if self._conn is None:
            raise RuntimeError("MySQL connection is closed.")
        return self._conn

    def _run(
        self, sql: str, bindings: Optional[Sequence[Any]], fetch: bool
    ) -> List[Dict[str, Any]]:
        mysql_sql, mysql_params = translate_qmark_params_to_mysql(sql, bindings)
        logger.debug("mysql: %s | %d binding(s)", sql, len(mysql_params or []))
        with self._connection().cursor() as cursor:
            cursor.execute(mysql_sql, mysql_params)
            if cursor.lastrowid:
                self._last_insert_id = cursor.lastrowid
            if not fetch or cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]

    def statement(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        return trace_query_operation(
            "dal.query.statement",
            self.provider,
            sql,
            lambda: self._run(sql, bindings, fetch=True),
        )

    def execute(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> bool:
        def _op() -> bool:
            self._run(sql, bindings, fetch=False)
            return True

        return trace_query_operation("dal.query.execute", self.provider, sql, _op)

    def last_insert_id(self) -> Optional[int]:
        return self._last_insert_id

    def begin_transaction(self) -> bool:
        self._transaction.enter()
        self._connection().begin()
        return True

    def commit(self) -> bool:
        self._transaction.leave("commit")
        self._connection().commit()
        return True

    def rollback(self) -> bool:
        self._transaction.leave("rollback")
        self._connection().rollback()
        return True

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
