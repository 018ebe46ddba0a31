"""Explicit, non-nested transaction helpers shared by the drivers."""

import logging
from contextlib import contextmanager
from typing import Iterator

from common.errors import ErrorCode, ReasonCodedError
from dal.contract import DatabaseDriver

logger = logging.getLogger(__name__)


class TransactionStateError(ReasonCodedError, RuntimeError):
    """Raised on nested begin or on commit/rollback without a transaction."""

    def __init__(self, message: str) -> None:
        """Tag transaction misuse with its reason code."""
        super().__init__(message, reason_code=ErrorCode.TRANSACTION_STATE)


class TransactionGuard:
    """Track whether a connection currently has an open transaction."""

    def __init__(self, provider: str) -> None:
        """Start in autocommit state."""
        self._provider = provider
        self._active = False

    @property
    def active(self) -> bool:
        """Return True while a transaction is open."""
        return self._active

    def enter(self) -> None:
        if self._active:
            raise TransactionStateError(
                f"{self._provider} transaction already open; nested transactions are not supported."
            )
        self._active = True

    def leave(self, action: str) -> None:
        if not self._active:
            raise TransactionStateError(
                f"Cannot {action}: no {self._provider} transaction is open."
            )
        self._active = False


@contextmanager
def transaction(driver: DatabaseDriver) -> Iterator[DatabaseDriver]:
    """Run a block inside a transaction, committing on success.

    Any exception rolls the transaction back and is re-raised unchanged.
    DDL statements auto-commit on MySQL and are not undone by a rollback.
    """
    driver.begin_transaction()
    try:
        yield driver
    except BaseException:
        logger.debug("Rolling back %s transaction after error", driver.provider)
        driver.rollback()
        raise
    driver.commit()
