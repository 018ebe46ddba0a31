from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

Row = Dict[str, Any]


@runtime_checkable
class DatabaseDriver(Protocol):
    """Protocol for the synchronous database capability consumed by the toolkit.

    Bindings are positional and matched to ``?`` placeholders left to right.
    Implementations must propagate driver errors unchanged.
    """

    provider: str

    def statement(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> List[Row]:
        """Execute SQL and return the produced rows (empty for non-queries)."""
        ...

    def execute(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> bool:
        """Execute SQL and report success."""
        ...

    def last_insert_id(self) -> Any:
        """Return the id generated by the last INSERT on this connection."""
        ...

    def begin_transaction(self) -> bool:
        """Open a transaction; nested transactions are not supported."""
        ...

    def commit(self) -> bool:
        """Commit the open transaction."""
        ...

    def rollback(self) -> bool:
        """Roll back the open transaction."""
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...
