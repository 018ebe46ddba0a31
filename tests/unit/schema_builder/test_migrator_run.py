"""Tests for applying and rolling back migrations against SQLite."""

import pytest

from common.errors import ErrorCode
from schema_builder import LedgerTracking, MigrationError, Migrator

_TEMPLATE = '''
from schema_builder import Migration


class {class_name}(Migration):
    def up(self, schema):
        schema.statement("{up}")

    def down(self, schema):
        schema.statement("{down}")
'''


def _write(directory, file_name, up, down):
    directory.mkdir(parents=True, exist_ok=True)
    class_name = "".join(part.capitalize() for part in file_name[:-3].split("_")[4:])
    (directory / file_name).write_text(_TEMPLATE.format(class_name=class_name, up=up, down=down))


def _tables(driver):
    rows = driver.statement(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name != 'sqlite_sequence' "
        "ORDER BY name"
    )
    return [row["name"] for row in rows]


@pytest.fixture
def migrations_dir(tmp_path):
    directory = tmp_path / "migrations"
    _write(
        directory,
        "2024_01_01_000000_create_users_table.py",
        "CREATE TABLE users (id INTEGER PRIMARY KEY)",
        "DROP TABLE users",
    )
    _write(
        directory,
        "2024_01_01_000001_create_posts_table.py",
        "CREATE TABLE posts (id INTEGER PRIMARY KEY)",
        "DROP TABLE posts",
    )
    return directory


def test_migrate_applies_pending_in_order(migrations_dir, sqlite_driver):
    """Pending migrations run in file order and are recorded in the ledger."""
    migrator = Migrator(migrations_dir, sqlite_driver)

    applied = migrator.migrate()

    assert applied == [
        "2024_01_01_000000_create_users_table.py",
        "2024_01_01_000001_create_posts_table.py",
    ]
    assert _tables(sqlite_driver) == ["migrations", "posts", "users"]
    ledger = sqlite_driver.statement("SELECT name FROM migrations ORDER BY id")
    assert [row["name"] for row in ledger] == applied


def test_second_migrate_is_a_noop(migrations_dir, sqlite_driver, caplog):
    """Running migrate twice applies nothing the second time."""
    migrator = Migrator(migrations_dir, sqlite_driver)
    migrator.migrate()

    with caplog.at_level("INFO", logger="schema_builder.migrator"):
        assert migrator.migrate() == []

    assert "Nothing to migrate" in caplog.text


def test_failing_migration_stops_and_keeps_earlier_records(migrations_dir, sqlite_driver):
    """A failing up() propagates; earlier migrations stay recorded."""
    _write(
        migrations_dir,
        "2024_01_02_000000_broken.py",
        "CREATE TABLE users (id INTEGER)",
        "SELECT 1",
    )
    _write(
        migrations_dir,
        "2024_01_03_000000_create_tags_table.py",
        "CREATE TABLE tags (id INTEGER)",
        "DROP TABLE tags",
    )
    migrator = Migrator(migrations_dir, sqlite_driver)

    with pytest.raises(Exception, match="already exists"):
        migrator.migrate()

    ledger = [row["name"] for row in sqlite_driver.statement("SELECT name FROM migrations")]
    assert ledger == [
        "2024_01_01_000000_create_users_table.py",
        "2024_01_01_000001_create_posts_table.py",
    ]
    assert "tags" not in _tables(sqlite_driver)


def test_rollback_reverts_newest_first(migrations_dir, sqlite_driver):
    """rollback(steps) reverts the latest migrations and removes their records."""
    migrator = Migrator(migrations_dir, sqlite_driver)
    migrator.migrate()

    reverted = migrator.rollback(1)

    assert reverted == ["2024_01_01_000001_create_posts_table.py"]
    assert _tables(sqlite_driver) == ["migrations", "users"]
    assert migrator.rollback() == ["2024_01_01_000000_create_users_table.py"]
    assert _tables(sqlite_driver) == ["migrations"]


def test_rollback_with_empty_ledger(migrations_dir, sqlite_driver, caplog):
    """Rolling back with nothing applied logs and returns nothing."""
    migrator = Migrator(migrations_dir, sqlite_driver)

    with caplog.at_level("INFO", logger="schema_builder.migrator"):
        assert migrator.rollback() == []

    assert "Nothing to rollback" in caplog.text


def test_rollback_rejects_non_positive_steps(migrations_dir, sqlite_driver):
    """Zero or negative steps are invalid."""
    migrator = Migrator(migrations_dir, sqlite_driver)

    with pytest.raises(MigrationError) as exc_info:
        migrator.rollback(0)

    assert exc_info.value.reason_code == ErrorCode.VALIDATION_ERROR


def test_rollback_fails_when_file_is_missing(migrations_dir, sqlite_driver):
    """An applied migration whose file was deleted cannot be reverted."""
    migrator = Migrator(migrations_dir, sqlite_driver)
    migrator.migrate()
    (migrations_dir / "2024_01_01_000001_create_posts_table.py").unlink()

    with pytest.raises(MigrationError, match="not found"):
        migrator.rollback(1)


def test_status_reports_applied_and_pending(migrations_dir, sqlite_driver):
    """status() lists every file with its applied flag."""
    migrator = Migrator(migrations_dir, sqlite_driver)
    migrator.migrate()
    migrator.rollback(1)

    assert migrator.status() == [
        ("2024_01_01_000000_create_users_table.py", True),
        ("2024_01_01_000001_create_posts_table.py", False),
    ]


def test_by_name_tracking_picks_up_backdated_files(migrations_dir, sqlite_driver):
    """Name tracking applies a file sorted before already-applied ones."""
    migrator = Migrator(migrations_dir, sqlite_driver)
    migrator.migrate()
    _write(
        migrations_dir,
        "2023_12_31_000000_create_tags_table.py",
        "CREATE TABLE tags (id INTEGER)",
        "DROP TABLE tags",
    )

    assert migrator.migrate() == ["2023_12_31_000000_create_tags_table.py"]


def test_by_count_tracking_skips_backdated_files(migrations_dir, sqlite_driver):
    """Count tracking treats the first N files as applied."""
    migrator = Migrator(migrations_dir, sqlite_driver, tracking=LedgerTracking.BY_COUNT)
    migrator.migrate()
    _write(
        migrations_dir,
        "2023_12_31_000000_create_tags_table.py",
        "CREATE TABLE tags (id INTEGER)",
        "DROP TABLE tags",
    )

    assert migrator.status() == [
        ("2023_12_31_000000_create_tags_table.py", True),
        ("2024_01_01_000000_create_users_table.py", True),
        ("2024_01_01_000001_create_posts_table.py", False),
    ]


def test_migrate_applies_only_files_after_the_applied_ones(migrations_dir, sqlite_driver):
    """With N of M files applied, exactly the remaining M - N are applied and recorded."""
    migrator = Migrator(migrations_dir, sqlite_driver)
    migrator.migrate()
    _write(
        migrations_dir,
        "2024_02_01_000000_create_tags_table.py",
        "CREATE TABLE tags (id INTEGER)",
        "DROP TABLE tags",
    )
    _write(
        migrations_dir,
        "2024_02_01_000001_create_labels_table.py",
        "CREATE TABLE labels (id INTEGER)",
        "DROP TABLE labels",
    )

    applied = migrator.migrate()

    assert applied == [
        "2024_02_01_000000_create_tags_table.py",
        "2024_02_01_000001_create_labels_table.py",
    ]
    ledger = [row["name"] for row in sqlite_driver.statement("SELECT name FROM migrations")]
    assert ledger[2:] == applied
    assert len(ledger) == 4
