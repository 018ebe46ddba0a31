"""Migration file generator and runner.

Migration files are named ``<YYYY_MM_DD>_<seq:06d>_<name>.py`` so that a
lexical sort orders them by date and then by same-day sequence. Applied
migrations are recorded by file name in the ``migrations`` ledger table.
"""

import json
import logging
import re
import string
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from common.errors import ErrorCode
from dal.contract import DatabaseDriver
from schema_builder.exceptions import MigrationError
from schema_builder.migration import load_migration
from schema_builder.schema import Schema

logger = logging.getLogger(__name__)

LEDGER_TABLE = "migrations"

LEDGER_DDL: Dict[str, str] = {
    "mysql": (
        "CREATE TABLE IF NOT EXISTS migrations "
        "(id INT AUTO_INCREMENT PRIMARY KEY, name VARCHAR(256))ENGINE=innodb"
    ),
    "sqlite": (
        "CREATE TABLE IF NOT EXISTS migrations "
        "(id INTEGER PRIMARY KEY AUTOINCREMENT, name VARCHAR(256))"
    ),
}

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "migration.py.tmpl"

_CREATE_PATTERN = re.compile(r"^create_(.*)_table$")
_ALTER_PATTERN = re.compile(r"^.*(from|to)_(.*)_table$")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
MIGRATION_FILE = re.compile(r"^\d{4}_\d{2}_\d{2}_\d{6}_.+\.py$")

CREATE_SKELETONS: Dict[str, str] = {
    "mysql": "CREATE TABLE {table} (id INT AUTO_INCREMENT PRIMARY KEY)ENGINE=innodb",
    "sqlite": "CREATE TABLE {table} (id INTEGER PRIMARY KEY AUTOINCREMENT)",
}

FIELD_TYPES = (
    "id",
    "string",
    "integer",
    "decimal",
    "boolean",
    "text",
    "date",
    "datetime",
    "timestamp",
    "enum",
)

INDENT = " " * 8


class LedgerTracking(str, Enum):
    """How ``migrate()`` decides which files are still pending."""

    BY_NAME = "by_name"
    BY_COUNT = "by_count"


class MigrationKind(str, Enum):
    CREATE = "create"
    ALTER = "alter"
    CUSTOM = "custom"


class MigrationRecord(BaseModel):
    """A generated migration file."""

    sequence: int
    date_stamp: str
    name: str
    table: Optional[str] = None
    kind: MigrationKind
    file_name: str
    path: Path
    content: str

    model_config = {"frozen": True}


def snake_case(name: str) -> str:
    """Normalize ``"CreateUsersTable"`` or ``"create users-table"`` to snake_case."""
    spaced = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name.strip())
    return re.sub(r"[^a-z0-9]+", "_", spaced.lower()).strip("_")


def _class_name(name: str) -> str:
    return "".join(part.capitalize() for part in name.split("_") if part) or "Migration"


def parse_fields(fields: Union[str, List[str], None]) -> List[Tuple[str, str, List[str]]]:
    """Parse ``"name:string,price:decimal:10:2,status:enum:a:b"`` into field specs."""
    if not fields:
        return []
    raw_fields = fields.split(",") if isinstance(fields, str) else list(fields)
    parsed = []
    for raw in raw_fields:
        parts = [part.strip() for part in raw.split(":")]
        if len(parts) < 2 or not parts[0]:
            raise MigrationError(
                f"Invalid field definition '{raw}'; expected name:type[:params]",
                reason_code=ErrorCode.MIGRATION_INVALID_FIELD,
            )
        name, field_type, params = parts[0], parts[1].lower(), parts[2:]
        if not _IDENTIFIER.match(name):
            raise MigrationError(
                f"Invalid column name '{name}'", reason_code=ErrorCode.MIGRATION_INVALID_FIELD
            )
        if field_type not in FIELD_TYPES:
            raise MigrationError(
                f"Unknown column type '{field_type}' for field '{name}'. "
                f"Available types: {', '.join(FIELD_TYPES)}",
                reason_code=ErrorCode.MIGRATION_INVALID_FIELD,
            )
        if field_type == "enum" and not params:
            raise MigrationError(
                f"Enum field '{name}' needs at least one value",
                reason_code=ErrorCode.MIGRATION_INVALID_FIELD,
            )
        parsed.append((name, field_type, params))
    return parsed


def _int_params(name: str, params: List[str]) -> List[str]:
    for value in params:
        if not value.isdigit():
            raise MigrationError(
                f"Field '{name}' expects integer parameters, got '{value}'",
                reason_code=ErrorCode.MIGRATION_INVALID_FIELD,
            )
    return params


def _field_call(name: str, field_type: str, params: List[str]) -> str:
    if field_type == "id":
        return f'table.id("{name}")'
    if field_type == "enum":
        return f'table.enum("{name}", {json.dumps(params)})'
    if field_type in ("string", "decimal"):
        args = "".join(f", {value}" for value in _int_params(name, params))
        return f'table.{field_type}("{name}"{args})'
    return f'table.{field_type}("{name}")'


def _statement(sql: str) -> List[str]:
    return [f"schema.statement({json.dumps(sql)})"]


def _callback(body: List[str]) -> List[str]:
    return ["def build(table):"] + [f"    {line}" for line in body] + [""]


class Migrator:
    """Generate migration files and replay them against a database.

    Args:
        migrations_dir: Directory holding the migration files.
        driver: Connected database driver used for the ledger and the migrations.
        templates_dir: Directory holding ``migration.py.tmpl``; packaged default if None.
        clock: Returns "now"; used for the file date stamp.
        tracking: How pending migrations are detected (see :class:`LedgerTracking`).
    """

    def __init__(
        self,
        migrations_dir: Union[str, Path],
        driver: DatabaseDriver,
        templates_dir: Optional[Union[str, Path]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tracking: LedgerTracking = LedgerTracking.BY_NAME,
    ) -> None:
        self.migrations_dir = Path(migrations_dir)
        self.templates_dir = Path(templates_dir) if templates_dir else DEFAULT_TEMPLATES_DIR
        self._driver = driver
        self._schema = Schema(driver)
        self._clock = clock or datetime.now
        self.tracking = LedgerTracking(tracking)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def make(
        self,
        name: str,
        fields: Union[str, List[str], None] = None,
        table: Optional[str] = None,
        kind: str = "auto",
    ) -> MigrationRecord:
        """Write a new migration file and return its description.

        ``create_<table>_table`` produces a CREATE skeleton, ``..._(from|to)_<table>_table``
        an ALTER skeleton, anything else an empty shell. ``fields`` switches the
        body to blueprint calls, one per field.
        """
        migration_name = snake_case(name)
        if not migration_name:
            raise MigrationError(
                "Migration name must contain at least one letter or digit",
                reason_code=ErrorCode.VALIDATION_ERROR,
            )
        parsed_fields = parse_fields(fields)
        resolved_kind, resolved_table = self._classify(migration_name, table, kind, parsed_fields)
        up, down = self._bodies(resolved_kind, resolved_table, parsed_fields)

        template = string.Template((self.templates_dir / TEMPLATE_NAME).read_text())
        content = template.substitute(
            class_name=_class_name(migration_name),
            up="\n".join(f"{INDENT}{line}" if line else "" for line in up),
            down="\n".join(f"{INDENT}{line}" if line else "" for line in down),
        )

        self.migrations_dir.mkdir(parents=True, exist_ok=True)
        date_stamp = self._clock().strftime("%Y_%m_%d")
        sequence = sum(1 for name in self._files() if name.startswith(date_stamp))
        file_name = "%s_%06d_%s.py" % (date_stamp, sequence, migration_name)
        path = self.migrations_dir / file_name
        path.write_text(content)
        logger.info(f"Migration created => {file_name}")

        return MigrationRecord(
            sequence=sequence,
            date_stamp=date_stamp,
            name=migration_name,
            table=resolved_table,
            kind=resolved_kind,
            file_name=file_name,
            path=path,
            content=content,
        )

    def _classify(
        self,
        name: str,
        table: Optional[str],
        kind: str,
        fields: List[Tuple[str, str, List[str]]],
    ) -> Tuple[MigrationKind, Optional[str]]:
        create_match = _CREATE_PATTERN.match(name)
        alter_match = _ALTER_PATTERN.match(name)
        derived = create_match.group(1) if create_match else None
        if derived is None and alter_match:
            derived = alter_match.group(2)
        resolved_table = table or derived

        if kind != "auto":
            try:
                forced = MigrationKind(kind)
            except ValueError:
                raise MigrationError(
                    f"Unknown migration kind '{kind}'. Use auto, create, alter or custom",
                    reason_code=ErrorCode.VALIDATION_ERROR,
                ) from None
            if forced is not MigrationKind.CUSTOM and not resolved_table:
                raise MigrationError(
                    f"A {forced.value} migration needs a table name",
                    reason_code=ErrorCode.VALIDATION_ERROR,
                )
            return forced, resolved_table

        if create_match:
            return MigrationKind.CREATE, resolved_table
        if alter_match or (table and fields):
            return MigrationKind.ALTER, resolved_table
        return MigrationKind.CUSTOM, resolved_table

    def _bodies(
        self,
        kind: MigrationKind,
        table: Optional[str],
        fields: List[Tuple[str, str, List[str]]],
    ) -> Tuple[List[str], List[str]]:
        if kind is MigrationKind.CUSTOM:
            return (
                ['# schema.statement("")', "pass"],
                ['# schema.statement("")', "pass"],
            )

        calls = [_field_call(*field) for field in fields]
        provider = self._driver.provider
        if kind is MigrationKind.CREATE:
            if not fields:
                skeleton = CREATE_SKELETONS.get(provider, CREATE_SKELETONS["mysql"])
                return (
                    _statement(skeleton.format(table=table)),
                    _statement(f"DROP TABLE {table}"),
                )
            body = ["table.id()"] + calls + ["table.timestamps()"]
            return (
                _callback(body) + [f'schema.create("{table}", build)'],
                [f'schema.drop_if_exists("{table}")'],
            )

        if not fields:
            if provider == "sqlite":
                # SQLite rejects a bare ALTER TABLE; start from an empty blueprint.
                noop = _callback(["pass"]) + [f'schema.table("{table}", build)']
                return noop, noop
            return _statement(f"ALTER TABLE {table}"), _statement(f"ALTER TABLE {table}")
        if provider == "sqlite":
            # SQLite cannot add a NOT NULL column without a default to a populated table.
            calls = [f"{call}.nullable()" for call in calls]
        added = [name for name, _, _ in fields]
        return (
            _callback(calls) + [f'schema.table("{table}", build)'],
            [f'schema.table("{table}", lambda table: table.drop_column({json.dumps(added)}))'],
        )

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def _ensure_ledger(self) -> None:
        ddl = LEDGER_DDL.get(self._driver.provider, LEDGER_DDL["mysql"])
        self._driver.statement(ddl)

    def _applied(self) -> List[str]:
        rows = self._driver.statement(f"SELECT id, name FROM {LEDGER_TABLE} ORDER BY id")
        return [row["name"] for row in rows]

    def _files(self) -> List[str]:
        if not self.migrations_dir.is_dir():
            return []
        return sorted(
            path.name
            for path in self.migrations_dir.glob("*.py")
            if MIGRATION_FILE.match(path.name)
        )

    def _pending(self, files: List[str], applied: List[str]) -> List[str]:
        if self.tracking is LedgerTracking.BY_COUNT:
            return files[len(applied) :]
        applied_names = set(applied)
        return [name for name in files if name not in applied_names]

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def migrate(self) -> List[str]:
        """Apply pending migrations in lexical order and return their file names.

        A failing ``up()`` propagates; the ledger keeps only the migrations
        applied before it.
        """
        self._ensure_ledger()
        pending = self._pending(self._files(), self._applied())
        if not pending:
            logger.info("Nothing to migrate")
            return []

        migrated = []
        for file_name in pending:
            migration = load_migration(self.migrations_dir / file_name)
            migration.up(self._schema)
            self._driver.execute(f"INSERT INTO {LEDGER_TABLE} (name) VALUES (?)", [file_name])
            logger.info(f"Migrated => {file_name}")
            migrated.append(file_name)
        return migrated

    def rollback(self, steps: Optional[int] = None) -> List[str]:
        """Revert the most recently applied migrations, newest first.

        Args:
            steps: Number of migrations to revert; all of them when None.
        """
        if steps is not None and steps < 1:
            raise MigrationError(
                f"Rollback steps must be positive, got {steps}",
                reason_code=ErrorCode.VALIDATION_ERROR,
            )
        self._ensure_ledger()
        applied = list(reversed(self._applied()))
        if not applied:
            logger.info("Nothing to rollback")
            return []

        reverted = []
        for file_name in applied[:steps]:
            path = self.migrations_dir / file_name
            if not path.is_file():
                raise MigrationError(
                    f"Applied migration {file_name} not found in {self.migrations_dir}",
                    reason_code=ErrorCode.MIGRATION_LOAD_FAILED,
                )
            migration = load_migration(path)
            migration.down(self._schema)
            self._driver.execute(f"DELETE FROM {LEDGER_TABLE} WHERE name = ?", [file_name])
            logger.info(f"Rollback => {file_name}")
            reverted.append(file_name)
        return reverted

    def status(self) -> List[Tuple[str, bool]]:
        """Return every migration file with whether it counts as applied."""
        self._ensure_ledger()
        files = self._files()
        pending = set(self._pending(files, self._applied()))
        return [(name, name not in pending) for name in files]
