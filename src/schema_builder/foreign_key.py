from typing import TYPE_CHECKING, Optional, Sequence, Tuple, Union

from schema_builder.commands import AddForeignKey, ReferentialAction

if TYPE_CHECKING:
    from schema_builder.blueprint import Blueprint


class ForeignKeyDefinition:
    """Fluent builder for one foreign-key constraint of a blueprint.

    ``on(table)`` pushes the constraint into the blueprint. Calls made after
    that update the pushed constraint, so ``.on("users").on_delete("cascade")``
    and ``.on_delete("cascade").on("users")`` compile identically.
    """

    def __init__(self, blueprint: "Blueprint", columns: Tuple[str, ...]) -> None:
        self._blueprint = blueprint
        self._columns = columns
        self._foreign_columns: Tuple[str, ...] = ("id",)
        self._table: Optional[str] = None
        self._on_delete: Optional[ReferentialAction] = None
        self._on_update: Optional[ReferentialAction] = None
        self._name: Optional[str] = None
        self._index: Optional[int] = None

    def references(self, columns: Union[str, Sequence[str]]) -> "ForeignKeyDefinition":
        self._foreign_columns = (columns,) if isinstance(columns, str) else tuple(columns)
        return self._sync()

    def on_delete(self, action: Union[str, ReferentialAction]) -> "ForeignKeyDefinition":
        self._on_delete = ReferentialAction.normalize(action)
        return self._sync()

    def on_update(self, action: Union[str, ReferentialAction]) -> "ForeignKeyDefinition":
        self._on_update = ReferentialAction.normalize(action)
        return self._sync()

    def name(self, constraint_name: str) -> "ForeignKeyDefinition":
        """Override the generated ``fk_<table>_<foreign>_<cols>`` constraint name."""
        self._name = constraint_name
        return self._sync()

    def on(self, table: str) -> "ForeignKeyDefinition":
        self._table = table
        if self._index is None:
            self._index = self._blueprint.push_command(self._build())
            return self
        return self._sync()

    def _build(self) -> AddForeignKey:
        return AddForeignKey(
            columns=self._columns,
            table=self._table or "",
            foreign_columns=self._foreign_columns,
            on_delete=self._on_delete,
            on_update=self._on_update,
            name=self._name,
        )

    def _sync(self) -> "ForeignKeyDefinition":
        if self._index is not None:
            self._blueprint.replace_command(self._index, self._build())
        return self
