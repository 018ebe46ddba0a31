"""Data Abstraction Layer (DAL) for the schema and query builders.

This package exposes the driver capability contract, the concrete driver
factory and the transaction helper shared by every provider.
"""

from dal.config import DatabaseConfig
from dal.contract import DatabaseDriver, Row
from dal.factory import create_driver
from dal.transaction import TransactionStateError, transaction

__all__ = [
    "DatabaseConfig",
    "DatabaseDriver",
    "Row",
    "TransactionStateError",
    "create_driver",
    "transaction",
]
