"""Fluent DML builder compiling to SQL with positional ``?`` bindings."""

from query_builder.builder import QueryBuilder, QueryIntent, QueryKind
from query_builder.exceptions import InvalidQueryArgumentError, QueryBuilderError
from query_builder.grammar import QueryGrammar
from query_builder.metadata import TableColumn, TableColumnType

__all__ = [
    "InvalidQueryArgumentError",
    "QueryBuilder",
    "QueryBuilderError",
    "QueryGrammar",
    "QueryIntent",
    "QueryKind",
    "TableColumn",
    "TableColumnType",
]
