"""Table blueprints: the in-memory description of one CREATE or ALTER."""

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from common.errors import ErrorCode
from schema_builder.columns import ColumnBuilder, ColumnDefinition, ColumnType
from schema_builder.commands import (
    AddIndex,
    AddPrimaryKey,
    AddUniqueIndex,
    ChangeColumn,
    Command,
    DropColumn,
    DropIndex,
    DropPrimaryKey,
    DropUniqueIndex,
    RenameColumn,
    RenameIndex,
)
from schema_builder.exceptions import SchemaDefinitionError
from schema_builder.foreign_key import ForeignKeyDefinition
from schema_builder.grammar import SchemaGrammar
from schema_builder.identifiers import index_name

logger = logging.getLogger(__name__)

Columns = Union[str, Sequence[str]]

_TYPE_OPTIONS = ("length", "precision", "scale")


class BlueprintMode(str, Enum):
    CREATE = "create"
    ALTER = "alter"


def _as_tuple(columns: Columns) -> Tuple[str, ...]:
    if isinstance(columns, str):
        return (columns,)
    return tuple(columns)


class Blueprint:
    """Ordered columns and commands for one table, compiled once by ``to_sql``.

    Column helpers return a :class:`ColumnBuilder` bound to the new column.
    The blueprint-level modifiers (``nullable()``, ``default()``...) keep the
    positional convention and always target the most recently added column;
    they do nothing when no column has been added yet.
    """

    def __init__(
        self,
        table: str,
        mode: BlueprintMode = BlueprintMode.CREATE,
        grammar: Optional[SchemaGrammar] = None,
    ) -> None:
        self.table = table
        self.mode = mode
        self.columns: List[ColumnDefinition] = []
        self.commands: List[Command] = []
        self.table_engine: Optional[str] = "innodb"
        self.table_charset: Optional[str] = None
        self.table_collation: Optional[str] = None
        self._grammar = grammar or SchemaGrammar()

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def add_column(self, column_type: ColumnType, name: str, **params: Any) -> ColumnBuilder:
        try:
            resolved = ColumnType(column_type)
        except ValueError:
            raise SchemaDefinitionError(
                f"Unsupported column type {column_type!r} for column '{name}'",
                reason_code=ErrorCode.UNSUPPORTED_COLUMN_TYPE,
            ) from None
        column = ColumnDefinition(name=name, type=resolved)
        for option in _TYPE_OPTIONS:
            if params.get(option) is not None:
                setattr(column, option, params.pop(option))
            params.pop(option, None)
        if "values" in params:
            column.values = [str(value) for value in params.pop("values")]
        column.parameters.update(params)
        self.columns.append(column)
        return ColumnBuilder(self, len(self.columns) - 1)

    def id(self, name: str = "id") -> ColumnBuilder:
        return self.add_column(ColumnType.ID, name).auto_increment()

    def string(self, name: str, length: int = 255) -> ColumnBuilder:
        return self.add_column(ColumnType.STRING, name, length=length)

    def integer(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.INTEGER, name)

    def unsigned_integer(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.INTEGER, name, unsigned=True)

    def boolean(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.BOOLEAN, name)

    def text(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.TEXT, name)

    def decimal(self, name: str, precision: int = 8, scale: int = 2) -> ColumnBuilder:
        return self.add_column(ColumnType.DECIMAL, name, precision=precision, scale=scale)

    def date(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.DATE, name)

    def datetime(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.DATETIME, name)

    def timestamp(self, name: str) -> ColumnBuilder:
        return self.add_column(ColumnType.TIMESTAMP, name)

    def enum(self, name: str, values: Sequence[Any]) -> ColumnBuilder:
        return self.add_column(ColumnType.ENUM, name, values=values)

    def timestamps(self) -> None:
        """Add ``created_at`` and a nullable ``updated_at`` DATETIME pair."""
        self.datetime("created_at")
        self.datetime("updated_at").nullable()

    # ------------------------------------------------------------------
    # Modifiers applied to the most recently added column
    # ------------------------------------------------------------------

    def _last(self) -> Optional[ColumnBuilder]:
        if not self.columns:
            return None
        return ColumnBuilder(self, len(self.columns) - 1)

    def nullable(self, value: bool = True) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.nullable(value)
        return self

    def default(self, value: Any) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.default(value)
        return self

    def unique(self) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.unique()
        return self

    def unsigned(self) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.unsigned()
        return self

    def comment(self, text: str) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.comment(text)
        return self

    def auto_increment(self) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.auto_increment()
        return self

    def column_charset(self, name: str) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.charset(name)
        return self

    def column_collation(self, name: str) -> "Blueprint":
        last = self._last()
        if last is not None:
            last.collation(name)
        return self

    # ------------------------------------------------------------------
    # Table options
    # ------------------------------------------------------------------

    def engine(self, name: str) -> "Blueprint":
        self.table_engine = name
        return self

    def charset(self, name: str) -> "Blueprint":
        self.table_charset = name
        return self

    def collation(self, name: str) -> "Blueprint":
        self.table_collation = name
        return self

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def push_command(self, command: Command) -> int:
        """Append a command and return its position."""
        self.commands.append(command)
        return len(self.commands) - 1

    def replace_command(self, position: int, command: Command) -> None:
        self.commands[position] = command

    def _require_alter(self, operation: str) -> None:
        if self.mode is not BlueprintMode.ALTER:
            raise SchemaDefinitionError(
                f"{operation}() is only valid when altering a table, "
                f"not when creating '{self.table}'.",
                reason_code=ErrorCode.ALTER_ONLY_COMMAND,
            )

    def index(self, columns: Columns, name: Optional[str] = None) -> "Blueprint":
        cols = _as_tuple(columns)
        self.push_command(AddIndex(cols, name or index_name(self.table, cols, "index")))
        return self

    def primary(self, columns: Columns, name: Optional[str] = None) -> "Blueprint":
        self.push_command(AddPrimaryKey(_as_tuple(columns), name))
        return self

    def unique_index(self, columns: Columns, name: Optional[str] = None) -> "Blueprint":
        cols = _as_tuple(columns)
        self.push_command(AddUniqueIndex(cols, name or index_name(self.table, cols, "unique")))
        return self

    def foreign(self, columns: Columns) -> ForeignKeyDefinition:
        return ForeignKeyDefinition(self, _as_tuple(columns))

    def drop_column(self, columns: Columns) -> "Blueprint":
        self._require_alter("drop_column")
        self.push_command(DropColumn(_as_tuple(columns)))
        return self

    def rename_column(
        self, old: str, new: str, type: Optional[str] = None, **options: int
    ) -> "Blueprint":
        """Rename a column; MySQL requires the full column type, VARCHAR(255) by default."""
        self._require_alter("rename_column")
        self.push_command(RenameColumn(old, new, type, dict(options)))
        return self

    def drop_index(
        self, columns: Optional[Columns] = None, name: Optional[str] = None
    ) -> "Blueprint":
        self._require_alter("drop_index")
        self.push_command(DropIndex(self._resolve_index_name(columns, name, "index")))
        return self

    def drop_primary(self, name: Optional[str] = None) -> "Blueprint":
        self._require_alter("drop_primary")
        self.push_command(DropPrimaryKey(name))
        return self

    def drop_unique(
        self, columns: Optional[Columns] = None, name: Optional[str] = None
    ) -> "Blueprint":
        self._require_alter("drop_unique")
        self.push_command(DropUniqueIndex(self._resolve_index_name(columns, name, "unique")))
        return self

    def rename_index(self, old: str, new: str) -> "Blueprint":
        self._require_alter("rename_index")
        self.push_command(RenameIndex(old, new))
        return self

    def change(self, column: str, type: str, **parameters: Any) -> "Blueprint":
        self._require_alter("change")
        self.push_command(self._change_command(column, type, parameters))
        return self

    def change_to_nullable(self, column: str, type: str, **parameters: Any) -> "Blueprint":
        self._require_alter("change_to_nullable")
        parameters["nullable"] = True
        self.push_command(self._change_command(column, type, parameters))
        return self

    def change_to_not_null(self, column: str, type: str, **parameters: Any) -> "Blueprint":
        self._require_alter("change_to_not_null")
        parameters["nullable"] = False
        self.push_command(self._change_command(column, type, parameters))
        return self

    def _change_command(self, column: str, type: str, parameters: dict) -> ChangeColumn:
        has_default = "default" in parameters
        return ChangeColumn(
            column=column,
            type=type,
            nullable=parameters.pop("nullable", None),
            default=parameters.pop("default", None),
            has_default=has_default,
            parameters=parameters,
        )

    def _resolve_index_name(
        self, columns: Optional[Columns], name: Optional[str], kind: str
    ) -> str:
        if name:
            return name
        if not columns:
            raise SchemaDefinitionError(f"drop_{kind}() needs either columns or an index name.")
        return index_name(self.table, _as_tuple(columns), kind)

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def has_commands(self) -> bool:
        return bool(self.columns or self.commands)

    def to_statements(self) -> List[str]:
        """Compile the blueprint into the statements to run, in order."""
        statements = self._grammar.compile_statements(self)
        logger.debug(
            "Compiled %s blueprint for %s into %d statement(s)",
            self.mode.value,
            self.table,
            len(statements),
        )
        return statements

    def to_sql(self) -> str:
        return ";\n".join(self.to_statements())
