"""DDL grammars for blueprints.

:class:`SchemaGrammar` emits MySQL/MariaDB text and is the reference dialect.
:class:`SqliteSchemaGrammar` emits the subset SQLite understands and splits
work that SQLite cannot do in one statement into several.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from common.errors import ErrorCode
from common.sql.dialect import quote_identifier, quote_identifiers, quote_string_literal
from schema_builder.columns import ColumnDefinition, ColumnType
from schema_builder.commands import (
    AddForeignKey,
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
from schema_builder.identifiers import foreign_key_name

if TYPE_CHECKING:
    from schema_builder.blueprint import Blueprint

INDENT = "    "
DEFAULT_RENAME_TYPE = "VARCHAR(255)"


def format_default(value: Any) -> str:
    """Render a column default: booleans as 1/0, numbers bare, the rest quoted."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    return quote_string_literal(str(value))


def compile_type(
    column_type: ColumnType,
    length: Optional[int] = None,
    precision: Optional[int] = None,
    scale: Optional[int] = None,
    values: Optional[List[str]] = None,
) -> str:
    if column_type in (ColumnType.ID, ColumnType.INTEGER):
        return "INT"
    if column_type is ColumnType.STRING:
        return f"VARCHAR({length or 255})"
    if column_type is ColumnType.BOOLEAN:
        return "TINYINT(1)"
    if column_type is ColumnType.DECIMAL:
        return f"DECIMAL({precision or 8},{scale if scale is not None else 2})"
    if column_type is ColumnType.ENUM:
        return "ENUM(" + ", ".join(quote_string_literal(str(v)) for v in values or []) + ")"
    return column_type.name


def resolve_type(type_name: Optional[str], options: Dict[str, int]) -> str:
    """Resolve a logical type name (``"decimal"``) or raw SQL type to SQL text."""
    if not type_name:
        return DEFAULT_RENAME_TYPE
    try:
        logical = ColumnType(type_name.lower())
    except ValueError:
        return type_name.upper()
    return compile_type(
        logical,
        length=options.get("length"),
        precision=options.get("precision"),
        scale=options.get("scale"),
    )


class SchemaGrammar:
    """Compile blueprints into MySQL DDL text."""

    dialect = "mysql"

    def quote(self, name: str) -> str:
        return quote_identifier(name, self.dialect)

    def columnize(self, names: Iterable[str]) -> str:
        return quote_identifiers(names, self.dialect)

    def compile_column(self, column: ColumnDefinition) -> str:
        parts = [
            self.quote(column.name),
            compile_type(column.type, column.length, column.precision, column.scale, column.values),
        ]
        params = column.parameters
        if params.get("unsigned"):
            parts[-1] += " UNSIGNED"
        if params.get("charset"):
            parts.append(f"CHARACTER SET {params['charset']}")
        if params.get("collation"):
            parts.append(f"COLLATE {params['collation']}")
        parts.append("NULL" if column.nullable else "NOT NULL")
        if column.has_default:
            parts.append(f"DEFAULT {format_default(column.default)}")
        if column.auto_increment:
            parts.append("AUTO_INCREMENT")
        if column.primary:
            parts.append("PRIMARY KEY")
        if column.unique:
            parts.append("UNIQUE")
        if params.get("comment") is not None:
            parts.append(f"COMMENT {quote_string_literal(str(params['comment']))}")
        return " ".join(parts)

    def compile_foreign_key(self, command: AddForeignKey, table: str) -> str:
        name = command.name or foreign_key_name(table, command.table, command.columns)
        sql = (
            f"CONSTRAINT {self.quote(name)} FOREIGN KEY ({self.columnize(command.columns)}) "
            f"REFERENCES {command.table}({self.columnize(command.foreign_columns)})"
        )
        if command.on_delete is not None:
            sql += f" ON DELETE {command.on_delete.value}"
        if command.on_update is not None:
            sql += f" ON UPDATE {command.on_update.value}"
        return sql

    def compile_create_command(self, command: Command, table: str) -> str:
        if isinstance(command, AddForeignKey):
            return self.compile_foreign_key(command, table)
        if isinstance(command, AddPrimaryKey):
            return f"PRIMARY KEY ({self.columnize(command.columns)})"
        if isinstance(command, AddUniqueIndex):
            return f"UNIQUE KEY {self.quote(command.name)} ({self.columnize(command.columns)})"
        if isinstance(command, AddIndex):
            return f"INDEX {self.quote(command.name)} ({self.columnize(command.columns)})"
        raise TypeError(f"{type(command).__name__} cannot be compiled in CREATE TABLE mode")

    def compile_alter_command(self, command: Command, table: str) -> List[str]:
        """Return the ALTER TABLE clauses for one command."""
        if isinstance(command, AddForeignKey):
            return ["ADD " + self.compile_foreign_key(command, table)]
        if isinstance(command, DropColumn):
            return [f"DROP COLUMN {self.quote(column)}" for column in command.columns]
        if isinstance(command, RenameColumn):
            new_type = resolve_type(command.type, command.options)
            old, new = self.quote(command.old), self.quote(command.new)
            return [f"CHANGE COLUMN {old} {new} {new_type}"]
        if isinstance(command, AddPrimaryKey):
            return [f"ADD PRIMARY KEY ({self.columnize(command.columns)})"]
        if isinstance(command, AddUniqueIndex):
            name, columns = self.quote(command.name), self.columnize(command.columns)
            return [f"ADD UNIQUE KEY {name} ({columns})"]
        if isinstance(command, AddIndex):
            return [f"ADD INDEX {self.quote(command.name)} ({self.columnize(command.columns)})"]
        if isinstance(command, (DropIndex, DropUniqueIndex)):
            return [f"DROP INDEX {self.quote(command.name)}"]
        if isinstance(command, DropPrimaryKey):
            return ["DROP PRIMARY KEY"]
        if isinstance(command, RenameIndex):
            return [f"RENAME INDEX {self.quote(command.old)} TO {self.quote(command.new)}"]
        if isinstance(command, ChangeColumn):
            return [self.compile_change(command)]
        raise TypeError(f"Unsupported blueprint command: {type(command).__name__}")

    def compile_change(self, command: ChangeColumn) -> str:
        column_type = resolve_type(command.type, command.parameters)
        sql = f"MODIFY COLUMN {self.quote(command.column)} {column_type}"
        if command.parameters.get("unsigned"):
            sql += " UNSIGNED"
        if command.nullable is not None:
            sql += " NULL" if command.nullable else " NOT NULL"
        if command.has_default:
            sql += f" DEFAULT {format_default(command.default)}"
        return sql

    def compile_create(self, blueprint: "Blueprint") -> str:
        lines = [self.compile_column(column) for column in blueprint.columns]
        lines.extend(
            self.compile_create_command(command, blueprint.table) for command in blueprint.commands
        )
        sql = f"CREATE TABLE {blueprint.table} (\n{INDENT}" + f",\n{INDENT}".join(lines) + "\n)"
        if blueprint.table_engine:
            sql += f" ENGINE={blueprint.table_engine}"
        if blueprint.table_charset:
            sql += f" DEFAULT CHARACTER SET {blueprint.table_charset}"
        if blueprint.table_collation:
            sql += f" COLLATE {blueprint.table_collation}"
        return sql

    def compile_alter(self, blueprint: "Blueprint") -> str:
        clauses = ["ADD COLUMN " + self.compile_column(column) for column in blueprint.columns]
        for command in blueprint.commands:
            clauses.extend(self.compile_alter_command(command, blueprint.table))
        if not clauses:
            return ""
        return f"ALTER TABLE {blueprint.table}\n{INDENT}" + f",\n{INDENT}".join(clauses)

    def compile_statements(self, blueprint: "Blueprint") -> List[str]:
        """Return the statements to execute, in order, for ``blueprint``."""
        if blueprint.mode.value == "create":
            return [self.compile_create(blueprint)]
        sql = self.compile_alter(blueprint)
        return [sql] if sql else []

    def compile_rename(self, old: str, new: str) -> str:
        return f"RENAME TABLE {self.quote(old)} TO {self.quote(new)}"


class SqliteSchemaGrammar(SchemaGrammar):
    """Compile blueprints into SQLite DDL.

    SQLite has no table engines, charsets, column comments or unsigned
    integers, so those modifiers are dropped. An auto-increment column
    becomes ``INTEGER PRIMARY KEY AUTOINCREMENT``, enums become ``TEXT`` with
    a CHECK constraint, and secondary indexes are created with separate
    ``CREATE INDEX`` statements. ALTER TABLE accepts one change per statement.
    """

    dialect = "sqlite"

    def compile_column(self, column: ColumnDefinition) -> str:
        name = self.quote(column.name)
        if column.type in (ColumnType.ID, ColumnType.INTEGER):
            column_type = "INTEGER"
        elif column.type is ColumnType.ENUM:
            column_type = "TEXT"
        else:
            column_type = compile_type(column.type, column.length, column.precision, column.scale)
        parts = [name, column_type, "NULL" if column.nullable else "NOT NULL"]
        if column.has_default:
            parts.append(f"DEFAULT {format_default(column.default)}")
        if column.primary or column.auto_increment:
            parts.append("PRIMARY KEY")
        if column.auto_increment:
            parts.append("AUTOINCREMENT")
        if column.unique:
            parts.append("UNIQUE")
        if column.type is ColumnType.ENUM:
            members = ", ".join(quote_string_literal(str(v)) for v in column.values or [])
            parts.append(f"CHECK ({name} IN ({members}))")
        return " ".join(parts)

    def compile_create_command(self, command: Command, table: str) -> str:
        if isinstance(command, AddUniqueIndex):
            name, columns = self.quote(command.name), self.columnize(command.columns)
            return f"CONSTRAINT {name} UNIQUE ({columns})"
        return super().compile_create_command(command, table)

    def _create_index(self, command: Union[AddIndex, AddUniqueIndex], table: str) -> str:
        keyword = "UNIQUE INDEX" if isinstance(command, AddUniqueIndex) else "INDEX"
        name, columns = self.quote(command.name), self.columnize(command.columns)
        return f"CREATE {keyword} {name} ON {table} ({columns})"

    def _unsupported(self, command: Command) -> SchemaDefinitionError:
        return SchemaDefinitionError(
            f"SQLite cannot apply {type(command).__name__} to an existing table",
            reason_code=ErrorCode.UNSUPPORTED_BY_PROVIDER,
        )

    def compile_alter_statements(self, command: Command, table: str) -> List[str]:
        """Return the standalone statements for one ALTER-mode command."""
        if isinstance(command, DropColumn):
            return [
                f"ALTER TABLE {table} DROP COLUMN {self.quote(column)}"
                for column in command.columns
            ]
        if isinstance(command, RenameColumn):
            old, new = self.quote(command.old), self.quote(command.new)
            return [f"ALTER TABLE {table} RENAME COLUMN {old} TO {new}"]
        if isinstance(command, (AddIndex, AddUniqueIndex)):
            return [self._create_index(command, table)]
        if isinstance(command, (DropIndex, DropUniqueIndex)):
            return [f"DROP INDEX {self.quote(command.name)}"]
        if isinstance(
            command, (AddForeignKey, AddPrimaryKey, DropPrimaryKey, RenameIndex, ChangeColumn)
        ):
            raise self._unsupported(command)
        raise TypeError(f"Unsupported blueprint command: {type(command).__name__}")

    def compile_create(self, blueprint: "Blueprint") -> str:
        lines = [self.compile_column(column) for column in blueprint.columns]
        lines.extend(
            self.compile_create_command(command, blueprint.table)
            for command in blueprint.commands
            if not isinstance(command, AddIndex)
        )
        return f"CREATE TABLE {blueprint.table} (\n{INDENT}" + f",\n{INDENT}".join(lines) + "\n)"

    def compile_alter(self, blueprint: "Blueprint") -> str:
        return ";\n".join(self.compile_statements(blueprint))

    def compile_statements(self, blueprint: "Blueprint") -> List[str]:
        table = blueprint.table
        if blueprint.mode.value == "create":
            statements = [self.compile_create(blueprint)]
            statements.extend(
                self._create_index(command, table)
                for command in blueprint.commands
                if isinstance(command, AddIndex)
            )
            return statements
        statements = [
            f"ALTER TABLE {table} ADD COLUMN {self.compile_column(column)}"
            for column in blueprint.columns
        ]
        for command in blueprint.commands:
            statements.extend(self.compile_alter_statements(command, table))
        return statements

    def compile_rename(self, old: str, new: str) -> str:
        return f"ALTER TABLE {self.quote(old)} RENAME TO {self.quote(new)}"


GRAMMARS = {
    "mysql": SchemaGrammar,
    "sqlite": SqliteSchemaGrammar,
}


def grammar_for(provider: Optional[str]) -> SchemaGrammar:
    """Return the grammar for a driver provider; unknown providers get MySQL."""
    return GRAMMARS.get((provider or "mysql").strip().lower(), SchemaGrammar)()
