"""Fluent query builder.

A builder accumulates one :class:`QueryIntent`. Terminal operations compile
it, hand SQL and positional bindings to the driver and then reset the
intent, so one builder can run several queries one after another.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from common.errors import ErrorCode
from dal.contract import DatabaseDriver, Row
from query_builder.exceptions import InvalidQueryArgumentError, QueryBuilderError
from query_builder.grammar import QueryGrammar
from query_builder.metadata import TableColumn
from query_builder.predicates import (
    BasicPredicate,
    BetweenPredicate,
    ColumnMatch,
    ColumnPredicate,
    GroupPredicate,
    InPredicate,
    JoinClause,
    MultiColumnPredicate,
    NullPredicate,
    OrderClause,
    Predicate,
    RawPredicate,
    SubSelect,
    normalize_boolean,
    normalize_operator,
)

logger = logging.getLogger(__name__)

_MISSING = object()


class QueryKind(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class QueryIntent:
    table: Optional[str] = None
    columns: List[Union[str, SubSelect]] = field(default_factory=lambda: ["*"])
    wheres: List[Predicate] = field(default_factory=list)
    joins: List[JoinClause] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    havings: List[Predicate] = field(default_factory=list)
    orders: List[OrderClause] = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None
    distinct: bool = False
    kind: QueryKind = QueryKind.SELECT


def _number(value: Any) -> Union[int, float]:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return float(value)


class QueryBuilder:
    """Build and run SELECT/INSERT/UPDATE/DELETE statements against a driver."""

    def __init__(
        self,
        driver: DatabaseDriver,
        grammar: Optional[QueryGrammar] = None,
        primary_key: str = "id",
    ) -> None:
        self._driver = driver
        self._grammar = grammar or QueryGrammar()
        self._intent = QueryIntent()
        self.primary_key = primary_key

    @property
    def intent(self) -> QueryIntent:
        return self._intent

    def reset(self) -> "QueryBuilder":
        """Discard the accumulated intent, keeping nothing from the previous query."""
        self._intent = QueryIntent()
        return self

    def _new_child(self) -> "QueryBuilder":
        return QueryBuilder(self._driver, self._grammar, self.primary_key)

    # ------------------------------------------------------------------
    # Intent
    # ------------------------------------------------------------------

    def table(self, table: str) -> "QueryBuilder":
        self._intent.table = table
        return self

    def select(self, columns: Union[str, Sequence[str]] = ("*",)) -> "QueryBuilder":
        self._intent.columns = [columns] if isinstance(columns, str) else list(columns)
        return self

    def select_raw(self, expression: str) -> "QueryBuilder":
        """Select a raw expression, e.g. ``"COUNT(*) AS total"``."""
        if self._intent.columns == ["*"]:
            self._intent.columns = []
        self._intent.columns.append(expression)
        return self

    def distinct(self) -> "QueryBuilder":
        self._intent.distinct = True
        return self

    def sub_query(self, callback: Callable[["QueryBuilder"], Any], alias: str) -> "QueryBuilder":
        """Add ``(SELECT ...) AS alias`` built by ``callback`` on a fresh builder."""
        child = self._new_child()
        callback(child)
        self._intent.columns.append(SubSelect(child.intent, alias))
        return self

    def where(
        self, column: str, operator: Any = _MISSING, value: Any = _MISSING, boolean: str = "AND"
    ) -> "QueryBuilder":
        """Add ``column op ?``; ``where(col, value)`` means ``=``."""
        if value is _MISSING:
            if operator is _MISSING:
                raise InvalidQueryArgumentError(f"where({column!r}) needs a value to compare with")
            operator, value = "=", operator
        self._intent.wheres.append(
            BasicPredicate(column, normalize_operator(operator), value, normalize_boolean(boolean))
        )
        return self

    def or_where(
        self, column: str, operator: Any = _MISSING, value: Any = _MISSING
    ) -> "QueryBuilder":
        return self.where(column, operator, value, boolean="OR")

    def where_in(
        self, column: str, values: Sequence[Any], boolean: str = "AND", negated: bool = False
    ) -> "QueryBuilder":
        self._intent.wheres.append(
            InPredicate(column, tuple(values), negated, normalize_boolean(boolean))
        )
        return self

    def where_not_in(
        self, column: str, values: Sequence[Any], boolean: str = "AND"
    ) -> "QueryBuilder":
        return self.where_in(column, values, boolean, negated=True)

    def or_where_in(self, column: str, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_in(column, values, "OR")

    def or_where_not_in(self, column: str, values: Sequence[Any]) -> "QueryBuilder":
        return self.where_in(column, values, "OR", negated=True)

    def where_null(
        self, column: str, boolean: str = "AND", negated: bool = False
    ) -> "QueryBuilder":
        self._intent.wheres.append(NullPredicate(column, negated, normalize_boolean(boolean)))
        return self

    def where_not_null(self, column: str, boolean: str = "AND") -> "QueryBuilder":
        return self.where_null(column, boolean, negated=True)

    def or_where_null(self, column: str) -> "QueryBuilder":
        return self.where_null(column, "OR")

    def or_where_not_null(self, column: str) -> "QueryBuilder":
        return self.where_null(column, "OR", negated=True)

    def where_between(
        self, column: str, low: Any, high: Any, boolean: str = "AND", negated: bool = False
    ) -> "QueryBuilder":
        self._intent.wheres.append(
            BetweenPredicate(column, low, high, negated, normalize_boolean(boolean))
        )
        return self

    def where_not_between(
        self, column: str, low: Any, high: Any, boolean: str = "AND"
    ) -> "QueryBuilder":
        return self.where_between(column, low, high, boolean, negated=True)

    def or_where_between(self, column: str, low: Any, high: Any) -> "QueryBuilder":
        return self.where_between(column, low, high, "OR")

    def where_raw(
        self, sql: str, bindings: Optional[Sequence[Any]] = None, boolean: str = "AND"
    ) -> "QueryBuilder":
        """Add verbatim SQL; ``bindings`` must match its ``?`` placeholders."""
        self._intent.wheres.append(
            RawPredicate(sql, tuple(bindings or ()), normalize_boolean(boolean))
        )
        return self

    def or_where_raw(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> "QueryBuilder":
        return self.where_raw(sql, bindings, "OR")

    def where_column(
        self, first: str, operator: str, second: str, boolean: str = "AND"
    ) -> "QueryBuilder":
        self._intent.wheres.append(
            ColumnPredicate(first, normalize_operator(operator), second, normalize_boolean(boolean))
        )
        return self

    def _where_columns(
        self, columns: Sequence[str], operator: Any, value: Any, boolean: str, match: ColumnMatch
    ) -> "QueryBuilder":
        if value is _MISSING:
            operator, value = "=", operator
        columns = [columns] if isinstance(columns, str) else list(columns)
        if not columns:
            raise InvalidQueryArgumentError(f"where_{match.value}() needs at least one column")
        self._intent.wheres.append(
            MultiColumnPredicate(
                tuple(columns),
                normalize_operator(operator),
                value,
                match,
                normalize_boolean(boolean),
            )
        )
        return self

    def where_any(
        self, columns: Sequence[str], operator: Any, value: Any = _MISSING, boolean: str = "AND"
    ) -> "QueryBuilder":
        """Match rows where at least one of ``columns`` compares true: ``(a = ? OR b = ?)``."""
        return self._where_columns(columns, operator, value, boolean, ColumnMatch.ANY)

    def where_all(
        self, columns: Sequence[str], operator: Any, value: Any = _MISSING, boolean: str = "AND"
    ) -> "QueryBuilder":
        """Match rows where every one of ``columns`` compares true."""
        return self._where_columns(columns, operator, value, boolean, ColumnMatch.ALL)

    def where_none(
        self, columns: Sequence[str], operator: Any, value: Any = _MISSING, boolean: str = "AND"
    ) -> "QueryBuilder":
        """Match rows where none of ``columns`` compares true: ``NOT (a = ? OR b = ?)``."""
        return self._where_columns(columns, operator, value, boolean, ColumnMatch.NONE)

    def where_group(
        self, callback: Callable[["QueryBuilder"], Any], boolean: str = "AND"
    ) -> "QueryBuilder":
        """Add a parenthesized group of predicates built by ``callback``.

        The callback receives a fresh builder; only its predicates are kept.
        """
        boolean = normalize_boolean(boolean)
        child = self._new_child()
        callback(child)
        self._intent.wheres.append(GroupPredicate(tuple(child.intent.wheres), boolean))
        return self

    def or_where_group(self, callback: Callable[["QueryBuilder"], Any]) -> "QueryBuilder":
        return self.where_group(callback, "OR")

    def join(
        self, table: str, first: str, operator: str, second: str, type: str = "INNER"
    ) -> "QueryBuilder":
        join_type = type.strip().upper()
        if join_type not in ("INNER", "LEFT", "RIGHT"):
            raise InvalidQueryArgumentError(f"Unsupported join type: {type!r}")
        self._intent.joins.append(
            JoinClause(join_type, table, first, normalize_operator(operator), second)
        )
        return self

    def left_join(self, table: str, first: str, operator: str, second: str) -> "QueryBuilder":
        return self.join(table, first, operator, second, "LEFT")

    def right_join(self, table: str, first: str, operator: str, second: str) -> "QueryBuilder":
        return self.join(table, first, operator, second, "RIGHT")

    def group_by(self, columns: Union[str, Sequence[str]]) -> "QueryBuilder":
        columns = [columns] if isinstance(columns, str) else list(columns)
        if not columns:
            raise InvalidQueryArgumentError("Group by columns cannot be empty")
        for column in columns:
            if not isinstance(column, str):
                raise InvalidQueryArgumentError(f"Group by column must be a string, got {column!r}")
        self._intent.groups.extend(columns)
        return self

    def having(
        self, column: str, operator: str, value: Any, boolean: str = "AND"
    ) -> "QueryBuilder":
        self._intent.havings.append(
            BasicPredicate(column, normalize_operator(operator), value, normalize_boolean(boolean))
        )
        return self

    def or_having(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        return self.having(column, operator, value, "OR")

    def order_by(self, column: str, direction: str = "ASC") -> "QueryBuilder":
        normalized = str(direction).strip().upper()
        if normalized not in ("ASC", "DESC"):
            raise InvalidQueryArgumentError(
                f"Order direction must be ASC or DESC, got {direction!r}"
            )
        self._intent.orders.append(OrderClause(column, normalized))
        return self

    def limit(self, limit: int) -> "QueryBuilder":
        if limit < 0:
            raise InvalidQueryArgumentError(f"Limit must not be negative, got {limit}")
        self._intent.limit = limit
        return self

    def offset(self, offset: int) -> "QueryBuilder":
        if offset < 0:
            raise InvalidQueryArgumentError(f"Offset must not be negative, got {offset}")
        self._intent.offset = offset
        return self

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def to_sql_with_bindings(self) -> Tuple[str, List[Any]]:
        """Compile the current SELECT without executing or resetting."""
        bindings: List[Any] = []
        sql = self._grammar.compile_select(self._intent, bindings)
        return sql, bindings

    def to_sql(self) -> str:
        return self.to_sql_with_bindings()[0]

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def _require_table(self) -> None:
        if not self._intent.table:
            raise QueryBuilderError(
                "No table set on the query builder; call table() first.",
                reason_code=ErrorCode.MISSING_TABLE,
            )

    def _run(self, compile_fn: Callable[[List[Any]], str], fetch: bool) -> Any:
        try:
            self._require_table()
            bindings: List[Any] = []
            sql = compile_fn(bindings)
            logger.debug("Query: %s | %d binding(s)", sql, len(bindings))
            if fetch:
                return self._driver.statement(sql, bindings)
            return self._driver.execute(sql, bindings)
        finally:
            self.reset()

    def get(self) -> List[Row]:
        intent = self._intent
        return self._run(lambda b: self._grammar.compile_select(intent, b), fetch=True)

    def first(self) -> Optional[Row]:
        intent = replace(self._intent, limit=1)
        rows = self._run(lambda b: self._grammar.compile_select(intent, b), fetch=True)
        return rows[0] if rows else None

    def set_primary_key(self, column: str) -> "QueryBuilder":
        self.primary_key = column
        return self

    def find(self, id: Any) -> Optional[Row]:
        """Return the row whose primary key equals ``id``, or None."""
        return self.where(self.primary_key, "=", id).first()

    def insert(self, data: Dict[str, Any]) -> bool:
        if not data:
            raise InvalidQueryArgumentError("insert() needs at least one column")
        self._intent.kind = QueryKind.INSERT
        intent = self._intent
        return self._run(lambda b: self._grammar.compile_insert(intent, [data], b), fetch=False)

    def insert_batch(self, rows: Sequence[Dict[str, Any]]) -> bool:
        """Insert several rows in one statement; every row must have the same columns."""
        if not rows or not rows[0]:
            raise InvalidQueryArgumentError("insert_batch() needs at least one non-empty row")
        columns = list(rows[0].keys())
        for row in rows:
            if list(row.keys()) != columns:
                raise InvalidQueryArgumentError("All rows must have the same columns")
        self._intent.kind = QueryKind.INSERT
        intent = self._intent
        return self._run(lambda b: self._grammar.compile_insert(intent, rows, b), fetch=False)

    def insert_or_update(self, data: Dict[str, Any]) -> bool:
        if not data:
            raise InvalidQueryArgumentError("insert_or_update() needs at least one column")
        self._intent.kind = QueryKind.INSERT
        intent = self._intent
        return self._run(lambda b: self._grammar.compile_upsert(intent, data, b), fetch=False)

    def update(self, data: Dict[str, Any]) -> bool:
        if not data:
            raise InvalidQueryArgumentError("update() needs at least one column")
        self._intent.kind = QueryKind.UPDATE
        intent = self._intent
        return self._run(lambda b: self._grammar.compile_update(intent, data, b), fetch=False)

    def delete(self) -> bool:
        self._intent.kind = QueryKind.DELETE
        intent = self._intent
        return self._run(lambda b: self._grammar.compile_delete(intent, b), fetch=False)

    def _step(self, column: str, step: Any, sign: str, name: str) -> bool:
        if isinstance(step, bool) or not isinstance(step, (int, float)) or step <= 0:
            raise InvalidQueryArgumentError(
                f"{name}() step must be a positive number, got {step!r}"
            )
        self._intent.kind = QueryKind.UPDATE
        intent = self._intent
        return self._run(
            lambda b: self._grammar.compile_increment(intent, column, sign, step, b), fetch=False
        )

    def increment(self, column: str, step: Union[int, float] = 1) -> bool:
        return self._step(column, step, "+", "increment")

    def decrement(self, column: str, step: Union[int, float] = 1) -> bool:
        return self._step(column, step, "-", "decrement")

    def _aggregate(self, function: str, column: str) -> Any:
        intent = self._intent
        rows = self._run(
            lambda b: self._grammar.compile_aggregate(intent, function, column, b), fetch=True
        )
        if not rows:
            return None
        return rows[0].get(f"{function.lower()}_result")

    def count(self, column: str = "*") -> int:
        return int(self._aggregate("COUNT", column) or 0)

    def sum(self, column: str) -> Union[int, float]:
        return _number(self._aggregate("SUM", column))

    def avg(self, column: str) -> Union[int, float]:
        return _number(self._aggregate("AVG", column))

    def min(self, column: str) -> Union[int, float]:
        return _number(self._aggregate("MIN", column))

    def max(self, column: str) -> Union[int, float]:
        return _number(self._aggregate("MAX", column))

    def paginate(self, per_page: int = 15, page: int = 1) -> Dict[str, Any]:
        """Return one page of rows plus totals.

        The COUNT query and the page query are both compiled from the current
        intent before it is reset.
        """
        if per_page < 1:
            raise InvalidQueryArgumentError(f"per_page must be positive, got {per_page}")
        page = max(1, page)
        try:
            self._require_table()
            count_bindings: List[Any] = []
            count_sql = self._grammar.compile_aggregate(self._intent, "COUNT", "*", count_bindings)
            page_intent = replace(self._intent, limit=per_page, offset=(page - 1) * per_page)
            page_bindings: List[Any] = []
            page_sql = self._grammar.compile_select(page_intent, page_bindings)

            count_rows = self._driver.statement(count_sql, count_bindings)
            total = int((count_rows[0].get("count_result") if count_rows else 0) or 0)
            rows = self._driver.statement(page_sql, page_bindings)
        finally:
            self.reset()

        return {
            "data": rows,
            "total": total,
            "per_page": per_page,
            "current_page": page,
            "last_page": math.ceil(total / per_page),
        }

    def get_table_columns(self) -> List[TableColumn]:
        """Describe the table's columns with ``SHOW FULL COLUMNS`` (MySQL only)."""
        table = self._intent.table
        rows = self._run(lambda b: f"SHOW FULL COLUMNS FROM {table}", fetch=True)
        return [TableColumn.from_row(row) for row in rows]

    def last_insert_id(self) -> Any:
        return self._driver.last_insert_id()
