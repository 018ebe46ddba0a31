"""Column descriptors and the fluent cursor used to modify them."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from schema_builder.blueprint import Blueprint


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()


class ColumnType(str, Enum):
    """Logical column types understood by the DDL grammar."""

    ID = "id"
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TEXT = "text"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    ENUM = "enum"


@dataclass
class ColumnDefinition:
    """A single column of a blueprint, in declaration order."""

    name: str
    type: ColumnType
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    values: List[str] = field(default_factory=list)
    nullable: bool = False
    default: Any = NO_DEFAULT
    unique: bool = False
    primary: bool = False
    auto_increment: bool = False
    parameters: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    def set_nullable(self, value: bool = True) -> None:
        self.nullable = value
        if value:
            self.default = None

    def set_default(self, value: Any) -> None:
        self.default = value

    def set_auto_increment(self) -> None:
        self.auto_increment = True
        self.primary = True


class ColumnBuilder:
    """Cursor bound to one column of a blueprint.

    Every modifier targets the column this builder was created for, no matter
    how many columns were added to the blueprint afterwards.
    """

    def __init__(self, blueprint: "Blueprint", index: int) -> None:
        self._blueprint = blueprint
        self._index = index

    @property
    def column(self) -> ColumnDefinition:
        return self._blueprint.columns[self._index]

    def nullable(self, value: bool = True) -> "ColumnBuilder":
        self.column.set_nullable(value)
        return self

    def default(self, value: Any) -> "ColumnBuilder":
        self.column.set_default(value)
        return self

    def unique(self) -> "ColumnBuilder":
        self.column.unique = True
        return self

    def unsigned(self) -> "ColumnBuilder":
        self.column.parameters["unsigned"] = True
        return self

    def comment(self, text: str) -> "ColumnBuilder":
        self.column.parameters["comment"] = text
        return self

    def auto_increment(self) -> "ColumnBuilder":
        self.column.set_auto_increment()
        return self

    def charset(self, name: str) -> "ColumnBuilder":
        self.column.parameters["charset"] = name
        return self

    def collation(self, name: str) -> "ColumnBuilder":
        self.column.parameters["collation"] = name
        return self
