"""Table blueprints, DDL compilation and migrations."""

from schema_builder.blueprint import Blueprint, BlueprintMode
from schema_builder.columns import NO_DEFAULT, ColumnBuilder, ColumnDefinition, ColumnType
from schema_builder.commands import ReferentialAction
from schema_builder.exceptions import (
    InvalidReferentialActionError,
    MigrationError,
    SchemaDefinitionError,
)
from schema_builder.foreign_key import ForeignKeyDefinition
from schema_builder.identifiers import shorten_identifier
from schema_builder.migration import Migration
from schema_builder.migrator import LedgerTracking, MigrationKind, MigrationRecord, Migrator
from schema_builder.schema import Schema

__all__ = [
    "Blueprint",
    "BlueprintMode",
    "ColumnBuilder",
    "ColumnDefinition",
    "ColumnType",
    "ForeignKeyDefinition",
    "InvalidReferentialActionError",
    "LedgerTracking",
    "Migration",
    "MigrationError",
    "MigrationKind",
    "MigrationRecord",
    "Migrator",
    "NO_DEFAULT",
    "ReferentialAction",
    "Schema",
    "SchemaDefinitionError",
    "shorten_identifier",
]
