"""Blueprint commands.

Each command is a frozen dataclass; the grammar dispatches on the concrete
type and rejects anything it does not know.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from schema_builder.exceptions import InvalidReferentialActionError


class ReferentialAction(str, Enum):
    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    NO_ACTION = "NO ACTION"
    RESTRICT = "RESTRICT"
    SET_DEFAULT = "SET DEFAULT"

    @classmethod
    def normalize(cls, value: Union[str, "ReferentialAction"]) -> "ReferentialAction":
        """Map ``"set_null"``, ``"Set Null"`` and similar spellings to a member."""
        if isinstance(value, ReferentialAction):
            return value
        if not isinstance(value, str):
            raise InvalidReferentialActionError(value)
        cleaned = " ".join(value.replace("_", " ").replace("-", " ").split()).upper()
        try:
            return cls(cleaned)
        except ValueError:
            raise InvalidReferentialActionError(value) from None


@dataclass(frozen=True)
class AddForeignKey:
    columns: Tuple[str, ...]
    table: str
    foreign_columns: Tuple[str, ...] = ("id",)
    on_delete: Optional[ReferentialAction] = None
    on_update: Optional[ReferentialAction] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class DropColumn:
    columns: Tuple[str, ...]


@dataclass(frozen=True)
class RenameColumn:
    old: str
    new: str
    type: Optional[str] = None
    options: Dict[str, int] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class AddIndex:
    columns: Tuple[str, ...]
    name: str


@dataclass(frozen=True)
class AddPrimaryKey:
    columns: Tuple[str, ...]
    name: Optional[str] = None


@dataclass(frozen=True)
class AddUniqueIndex:
    columns: Tuple[str, ...]
    name: str


@dataclass(frozen=True)
class DropIndex:
    name: str


@dataclass(frozen=True)
class DropPrimaryKey:
    name: Optional[str] = None


@dataclass(frozen=True)
class DropUniqueIndex:
    name: str


@dataclass(frozen=True)
class RenameIndex:
    old: str
    new: str


@dataclass(frozen=True)
class ChangeColumn:
    """Redefine an existing column with ``MODIFY COLUMN``."""

    column: str
    type: str
    nullable: Optional[bool] = None
    default: object = None
    has_default: bool = False
    parameters: Dict[str, int] = field(default_factory=dict, hash=False)


Command = Union[
    AddForeignKey,
    DropColumn,
    RenameColumn,
    AddIndex,
    AddPrimaryKey,
    AddUniqueIndex,
    DropIndex,
    DropPrimaryKey,
    DropUniqueIndex,
    RenameIndex,
    ChangeColumn,
]
