import logging
from typing import Any, Callable, List, Optional, Sequence

from dal.contract import DatabaseDriver, Row
from schema_builder.blueprint import Blueprint, BlueprintMode
from schema_builder.grammar import SchemaGrammar, grammar_for

logger = logging.getLogger(__name__)

BlueprintCallback = Callable[[Blueprint], Any]


class Schema:
    """Describe a table through a blueprint callback and run the compiled DDL.

    The DDL grammar follows ``driver.provider`` unless one is passed in.
    """

    def __init__(self, driver: DatabaseDriver, grammar: Optional[SchemaGrammar] = None) -> None:
        self._driver = driver
        self._grammar = grammar or grammar_for(driver.provider)

    @property
    def driver(self) -> DatabaseDriver:
        return self._driver

    @property
    def grammar(self) -> SchemaGrammar:
        return self._grammar

    def _run(self, sql: str) -> bool:
        logger.debug("DDL: %s", sql)
        return self._driver.execute(sql)

    def _run_all(self, statements: List[str]) -> bool:
        result = True
        for sql in statements:
            result = self._run(sql) and result
        return result

    def create(self, table: str, callback: BlueprintCallback) -> bool:
        blueprint = Blueprint(table, BlueprintMode.CREATE, self._grammar)
        callback(blueprint)
        return self._run_all(blueprint.to_statements())

    def table(self, table: str, callback: BlueprintCallback) -> bool:
        """Alter ``table``; nothing is executed when the callback added nothing."""
        blueprint = Blueprint(table, BlueprintMode.ALTER, self._grammar)
        callback(blueprint)
        if not blueprint.has_commands():
            logger.debug("Skipping empty ALTER TABLE for %s", table)
            return False
        return self._run_all(blueprint.to_statements())

    def rename(self, old: str, new: str) -> bool:
        return self._run(self._grammar.compile_rename(old, new))

    def drop(self, table: str) -> bool:
        return self._run(f"DROP TABLE {table}")

    def drop_if_exists(self, table: str) -> bool:
        return self._run(f"DROP TABLE IF EXISTS {table}")

    def statement(self, sql: str, bindings: Optional[Sequence[Any]] = None) -> List[Row]:
        """Run raw SQL, as used by generated migration skeletons."""
        logger.debug("Raw statement: %s", sql)
        return self._driver.statement(sql, bindings)
