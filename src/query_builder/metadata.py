"""Column metadata as reported by MySQL ``SHOW FULL COLUMNS``."""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

_RAW_TYPE = re.compile(r"^(\w+)(\((.+)\))?")
_QUOTED_MEMBER = re.compile(r"'((?:[^']|'')*)'")


class TableColumnType(BaseModel):
    """Parsed column type, e.g. ``decimal(8,2) unsigned`` or ``enum('a','b')``."""

    name: str
    parameters: Optional[List[str]] = None
    enum_values: Optional[List[str]] = None

    @classmethod
    def parse(cls, raw_type: str) -> "TableColumnType":
        match = _RAW_TYPE.match(raw_type.strip())
        if not match:
            raise ValueError(f"Invalid column type: {raw_type!r}")
        name = match.group(1).lower()
        args = match.group(3)
        if args is None:
            return cls(name=name)
        if name in ("enum", "set"):
            members = [value.replace("''", "'") for value in _QUOTED_MEMBER.findall(args)]
            return cls(name=name, enum_values=members)
        return cls(name=name, parameters=[v.strip() for v in args.split(",")])


class TableColumn(BaseModel):
    name: str
    type: TableColumnType
    collation: Optional[str] = None
    nullable: bool = False
    key: Optional[str] = None
    default: Any = None
    extra: Optional[str] = None
    privileges: Optional[str] = None
    comment: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TableColumn":
        return cls(
            name=row["Field"],
            type=TableColumnType.parse(row["Type"]),
            collation=row.get("Collation"),
            nullable=row.get("Null") == "YES",
            key=row.get("Key"),
            default=row.get("Default"),
            extra=row.get("Extra"),
            privileges=row.get("Privileges"),
            comment=row.get("Comment"),
        )
