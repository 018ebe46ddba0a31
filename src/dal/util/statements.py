"""Statement classification used for tracing and driver diagnostics."""

import logging
import re

import sqlglot
from sqlglot import exp

from common.sql.dialect import normalize_sqlglot_dialect

logger = logging.getLogger(__name__)

_SQL_COMMENT_RE = re.compile(r"(--[^\n]*|/\*.*?\*/)", flags=re.DOTALL)

_DDL_PREFIXES = {"CREATE", "ALTER", "DROP", "RENAME", "TRUNCATE"}
_DML_PREFIXES = {"SELECT": "select", "INSERT": "insert", "UPDATE": "update", "DELETE": "delete"}

_NODE_KINDS = (
    (exp.Select, "select"),
    (exp.Union, "select"),
    (exp.Insert, "insert"),
    (exp.Update, "update"),
    (exp.Delete, "delete"),
    (exp.Create, "ddl"),
    (exp.Drop, "ddl"),
)


def _lexical_kind(sql: str) -> str:
    stripped = _SQL_COMMENT_RE.sub(" ", sql).lstrip()
    if not stripped:
        return "other"
    first_token = stripped.split(maxsplit=1)[0].upper()
    if first_token in _DML_PREFIXES:
        return _DML_PREFIXES[first_token]
    if first_token in _DDL_PREFIXES:
        return "ddl"
    return "other"


def classify_statement(sql: str, dialect: str = "mysql") -> str:
    """Return one of select/insert/update/delete/ddl/other for a SQL string.

    sqlglot is tried first; statements it cannot model (MySQL-specific ALTER
    clauses, RENAME TABLE, SHOW) fall back to the leading keyword.
    """
    if not isinstance(sql, str) or not sql.strip():
        return "other"

    try:
        expression = sqlglot.parse_one(sql, read=normalize_sqlglot_dialect(dialect))
    except Exception:
        logger.debug("sqlglot could not parse statement; using lexical classification")
        return _lexical_kind(sql)

    for node_type, kind in _NODE_KINDS:
        if isinstance(expression, node_type):
            return kind
    return _lexical_kind(sql)
