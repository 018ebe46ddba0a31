import importlib.util
import inspect
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from common.errors import ErrorCode
from schema_builder.exceptions import MigrationError
from schema_builder.schema import Schema

logger = logging.getLogger(__name__)


class Migration(ABC):
    """Base class for migration files.

    A migration file defines exactly one subclass implementing ``up`` and
    ``down``; both receive the :class:`Schema` bound to the target driver.
    """

    @abstractmethod
    def up(self, schema: Schema) -> None:
        """Apply the migration."""
        pass

    @abstractmethod
    def down(self, schema: Schema) -> None:
        """Revert the migration."""
        pass


def load_migration(path: Path) -> Migration:
    """Import a migration file and instantiate the Migration subclass it defines."""
    module_name = f"_migration_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise MigrationError(
            f"Cannot load migration file {path}", reason_code=ErrorCode.MIGRATION_LOAD_FAILED
        )
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    candidates = [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and issubclass(obj, Migration)
        and obj is not Migration
        and obj.__module__ == module_name
    ]
    if len(candidates) != 1:
        raise MigrationError(
            f"Migration file {path.name} must define exactly one Migration subclass, "
            f"found {len(candidates)}",
            reason_code=ErrorCode.MIGRATION_LOAD_FAILED,
        )
    logger.debug("Loaded migration %s from %s", candidates[0].__name__, path)
    return candidates[0]()
