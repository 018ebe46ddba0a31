"""DML grammar for query intents.

Every ``compile_*`` method appends to the ``bindings`` list at the moment it
writes the matching ``?``, so bindings always follow placeholder order.
"""

from dataclasses import replace
from typing import TYPE_CHECKING, Any, Dict, List, Sequence

from common.errors import ErrorCode
from query_builder.exceptions import QueryBuilderError
from query_builder.predicates import (
    BasicPredicate,
    BetweenPredicate,
    ColumnMatch,
    ColumnPredicate,
    GroupPredicate,
    InPredicate,
    MultiColumnPredicate,
    NullPredicate,
    Predicate,
    RawPredicate,
    SubSelect,
)

if TYPE_CHECKING:
    from query_builder.builder import QueryIntent


def _require_table(intent: "QueryIntent") -> str:
    if not intent.table:
        raise QueryBuilderError(
            "No table set on the query builder; call table() first.",
            reason_code=ErrorCode.MISSING_TABLE,
        )
    return intent.table


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class QueryGrammar:
    """Compile query intents into MySQL-flavoured DML with ``?`` placeholders."""

    def compile_predicate(self, predicate: Predicate, bindings: List[Any]) -> str:
        if isinstance(predicate, BasicPredicate):
            bindings.append(predicate.value)
            return f"{predicate.column} {predicate.operator} ?"
        if isinstance(predicate, InPredicate):
            if not predicate.values:
                # IN () is invalid SQL
                return "1 = 1" if predicate.negated else "0 = 1"
            bindings.extend(predicate.values)
            keyword = "NOT IN" if predicate.negated else "IN"
            return f"{predicate.column} {keyword} ({_placeholders(len(predicate.values))})"
        if isinstance(predicate, NullPredicate):
            return f"{predicate.column} IS {'NOT ' if predicate.negated else ''}NULL"
        if isinstance(predicate, BetweenPredicate):
            bindings.extend([predicate.low, predicate.high])
            keyword = "NOT BETWEEN" if predicate.negated else "BETWEEN"
            return f"{predicate.column} {keyword} ? AND ?"
        if isinstance(predicate, RawPredicate):
            bindings.extend(predicate.bindings)
            return predicate.sql
        if isinstance(predicate, ColumnPredicate):
            return f"{predicate.first} {predicate.operator} {predicate.second}"
        if isinstance(predicate, GroupPredicate):
            inner = self.compile_predicates(predicate.predicates, bindings)
            return f"({inner})" if inner else ""
        if isinstance(predicate, MultiColumnPredicate):
            return self.compile_multi_column(predicate, bindings)
        raise TypeError(f"Unsupported predicate: {type(predicate).__name__}")

    def compile_multi_column(self, predicate: MultiColumnPredicate, bindings: List[Any]) -> str:
        comparisons = []
        for column in predicate.columns:
            bindings.append(predicate.value)
            comparisons.append(f"{column} {predicate.operator} ?")
        joiner = " AND " if predicate.match is ColumnMatch.ALL else " OR "
        sql = f"({joiner.join(comparisons)})"
        return f"NOT {sql}" if predicate.match is ColumnMatch.NONE else sql

    def compile_predicates(self, predicates: Sequence[Predicate], bindings: List[Any]) -> str:
        """Join predicates with their connectives; the first connective is dropped.

        Predicates that compile to nothing, such as groups holding only empty
        groups, are skipped together with their connective.
        """
        clauses: List[str] = []
        for predicate in predicates:
            sql = self.compile_predicate(predicate, bindings)
            if not sql:
                continue
            clauses.append(sql if not clauses else f"{predicate.boolean} {sql}")
        return " ".join(clauses)

    def compile_columns(self, columns: Sequence[Any], bindings: List[Any]) -> str:
        compiled = []
        for column in columns:
            if isinstance(column, SubSelect):
                subquery = self.compile_select(column.intent, bindings)
                compiled.append(f"({subquery}) AS {column.alias}")
            else:
                compiled.append(str(column))
        return ", ".join(compiled)

    def _compile_from(self, intent: "QueryIntent", bindings: List[Any]) -> str:
        sql = f" FROM {_require_table(intent)}"
        for join in intent.joins:
            sql += f" {join.type} JOIN {join.table} ON {join.first} {join.operator} {join.second}"
        wheres = self.compile_predicates(intent.wheres, bindings)
        if wheres:
            sql += f" WHERE {wheres}"
        return sql

    def compile_select(self, intent: "QueryIntent", bindings: List[Any]) -> str:
        _require_table(intent)
        sql = "SELECT "
        if intent.distinct:
            sql += "DISTINCT "
        sql += self.compile_columns(intent.columns, bindings)
        sql += self._compile_from(intent, bindings)
        if intent.groups:
            sql += " GROUP BY " + ", ".join(intent.groups)
        havings = self.compile_predicates(intent.havings, bindings)
        if havings:
            sql += f" HAVING {havings}"
        if intent.orders:
            sql += " ORDER BY " + ", ".join(f"{o.column} {o.direction}" for o in intent.orders)
        # MySQL has no OFFSET without LIMIT
        if intent.limit is not None:
            sql += f" LIMIT {intent.limit}"
            if intent.offset is not None:
                sql += f" OFFSET {intent.offset}"
        return sql

    def compile_aggregate(
        self, intent: "QueryIntent", function: str, column: str, bindings: List[Any]
    ) -> str:
        """Compile ``SELECT FN(column) AS fn_result``.

        Grouped, filtered-by-HAVING or DISTINCT intents are aggregated over
        their result rows through a derived table, so ``COUNT(*)`` counts
        groups rather than the raw rows behind them.
        """
        aggregate = f"{function.upper()}({column}) AS {function.lower()}_result"
        if intent.groups or intent.havings or intent.distinct:
            source = replace(intent, orders=[], limit=None, offset=None)
            inner = self.compile_select(source, bindings)
            return f"SELECT {aggregate} FROM ({inner}) AS sub"
        return f"SELECT {aggregate}{self._compile_from(intent, bindings)}"

    def compile_insert(
        self, intent: "QueryIntent", rows: Sequence[Dict[str, Any]], bindings: List[Any]
    ) -> str:
        table = _require_table(intent)
        columns = list(rows[0].keys())
        values = []
        for row in rows:
            bindings.extend(row[column] for column in columns)
            values.append(f"({_placeholders(len(columns))})")
        return f"INSERT INTO {table} ({', '.join(columns)}) VALUES {', '.join(values)}"

    def compile_upsert(
        self, intent: "QueryIntent", data: Dict[str, Any], bindings: List[Any]
    ) -> str:
        sql = self.compile_insert(intent, [data], bindings)
        updates = []
        for column, value in data.items():
            bindings.append(value)
            updates.append(f"{column} = ?")
        return f"{sql} ON DUPLICATE KEY UPDATE {', '.join(updates)}"

    def compile_update(
        self, intent: "QueryIntent", data: Dict[str, Any], bindings: List[Any]
    ) -> str:
        table = _require_table(intent)
        sets = []
        for column, value in data.items():
            bindings.append(value)
            sets.append(f"{column} = ?")
        sql = f"UPDATE {table} SET {', '.join(sets)}"
        return sql + self._compile_where(intent, bindings)

    def compile_increment(
        self, intent: "QueryIntent", column: str, sign: str, step: Any, bindings: List[Any]
    ) -> str:
        table = _require_table(intent)
        bindings.append(step)
        sql = f"UPDATE {table} SET {column} = {column} {sign} ?"
        return sql + self._compile_where(intent, bindings)

    def compile_delete(self, intent: "QueryIntent", bindings: List[Any]) -> str:
        table = _require_table(intent)
        return f"DELETE FROM {table}" + self._compile_where(intent, bindings)

    def _compile_where(self, intent: "QueryIntent", bindings: List[Any]) -> str:
        wheres = self.compile_predicates(intent.wheres, bindings)
        return f" WHERE {wheres}" if wheres else ""
