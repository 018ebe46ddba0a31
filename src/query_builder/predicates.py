"""Predicate and clause nodes accumulated by the query builder.

Nodes never hold placeholders of their own; the grammar emits ``?`` and the
matching binding together while compiling.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Tuple, Union

from query_builder.exceptions import InvalidQueryArgumentError

if TYPE_CHECKING:
    from query_builder.builder import QueryIntent

BOOLEANS = ("AND", "OR")

OPERATORS = frozenset(
    ["=", "!=", "<>", "<", ">", "<=", ">=", "<=>", "LIKE", "NOT LIKE", "REGEXP", "NOT REGEXP"]
)


def normalize_boolean(boolean: str) -> str:
    value = str(boolean).strip().upper()
    if value not in BOOLEANS:
        raise InvalidQueryArgumentError(f"Unknown boolean connective: {boolean!r}. Use AND or OR.")
    return value


def normalize_operator(operator: str) -> str:
    value = " ".join(str(operator).split()).upper()
    if value not in OPERATORS:
        raise InvalidQueryArgumentError(f"Unsupported comparison operator: {operator!r}")
    return value


@dataclass(frozen=True)
class BasicPredicate:
    column: str
    operator: str
    value: Any
    boolean: str = "AND"


@dataclass(frozen=True)
class InPredicate:
    column: str
    values: Tuple[Any, ...]
    negated: bool = False
    boolean: str = "AND"


@dataclass(frozen=True)
class NullPredicate:
    column: str
    negated: bool = False
    boolean: str = "AND"


@dataclass(frozen=True)
class BetweenPredicate:
    column: str
    low: Any
    high: Any
    negated: bool = False
    boolean: str = "AND"


@dataclass(frozen=True)
class RawPredicate:
    sql: str
    bindings: Tuple[Any, ...] = ()
    boolean: str = "AND"


@dataclass(frozen=True)
class ColumnPredicate:
    """Compare two columns (``first op second``); emits no placeholder."""

    first: str
    operator: str
    second: str
    boolean: str = "AND"


class ColumnMatch(str, Enum):
    """How a multi-column predicate combines its per-column comparisons."""

    ANY = "any"
    ALL = "all"
    NONE = "none"


@dataclass(frozen=True)
class MultiColumnPredicate:
    """Compare one value against several columns; one binding per column."""

    columns: Tuple[str, ...]
    operator: str
    value: Any
    match: ColumnMatch = ColumnMatch.ANY
    boolean: str = "AND"


@dataclass(frozen=True)
class GroupPredicate:
    predicates: Tuple["Predicate", ...]
    boolean: str = "AND"


Predicate = Union[
    BasicPredicate,
    InPredicate,
    NullPredicate,
    BetweenPredicate,
    RawPredicate,
    ColumnPredicate,
    GroupPredicate,
    MultiColumnPredicate,
]


@dataclass(frozen=True)
class JoinClause:
    type: str
    table: str
    first: str
    operator: str
    second: str


@dataclass(frozen=True)
class OrderClause:
    column: str
    direction: str


@dataclass(frozen=True)
class SubSelect:
    """A compiled-on-demand ``(SELECT ...) AS alias`` column."""

    intent: "QueryIntent"
    alias: str
