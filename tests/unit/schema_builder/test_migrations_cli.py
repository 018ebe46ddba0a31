"""Tests for the schema migration CLI."""

from unittest.mock import patch

import pytest

from schema_builder.cli import build_parser, main


@pytest.fixture(autouse=True)
def _no_dotenv():
    with patch("schema_builder.cli.load_dotenv"):
        yield


def test_parser_make_options():
    """make accepts fields, table and type options."""
    args = build_parser().parse_args(
        ["make", "create_users_table", "-f", "name:string", "-t", "users", "--type", "create"]
    )

    assert args.command == "make"
    assert args.name == "create_users_table"
    assert args.fields == "name:string"
    assert args.table == "users"
    assert args.kind == "create"


def test_no_command_prints_help(capsys):
    """Running without a subcommand prints usage and fails."""
    assert main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_make_writes_file_under_path(tmp_path):
    """make writes the migration into the --path directory."""
    target = tmp_path / "migrations"

    assert main(["--path", str(target), "make", "create_users_table"]) == 0

    files = [path.name for path in target.glob("*.py")]
    assert len(files) == 1
    assert files[0].endswith("_000000_create_users_table.py")


def test_migrations_path_from_env(tmp_path, monkeypatch):
    """MIGRATIONS_PATH is used when --path is omitted."""
    monkeypatch.setenv("MIGRATIONS_PATH", str(tmp_path / "from_env"))

    assert main(["make", "seed_data"]) == 0
    assert len(list((tmp_path / "from_env").glob("*_seed_data.py"))) == 1


def test_migrate_and_status_against_sqlite_file(tmp_path, monkeypatch, capsys):
    """migrate applies files and status reports them as applied."""
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "app.db"))
    target = tmp_path / "migrations"
    target.mkdir()
    (target / "2024_01_01_000000_create_items.py").write_text(
        "from schema_builder import Migration\n\n\n"
        "class CreateItems(Migration):\n"
        "    def up(self, schema):\n"
        '        schema.statement("CREATE TABLE items (id INTEGER)")\n\n'
        "    def down(self, schema):\n"
        '        schema.statement("DROP TABLE items")\n'
    )

    assert main(["--path", str(target), "migrate"]) == 0
    assert main(["--path", str(target), "status"]) == 0
    assert "Y  2024_01_01_000000_create_items.py" in capsys.readouterr().out

    assert main(["--path", str(target), "rollback", "--steps", "1"]) == 0
    assert main(["--path", str(target), "status"]) == 0
    assert "N  2024_01_01_000000_create_items.py" in capsys.readouterr().out


def test_failures_return_nonzero(tmp_path):
    """Errors are logged and reported through the exit code."""
    assert main(["--path", str(tmp_path), "make", "x", "-f", "bad"]) == 1


def test_driver_is_closed(tmp_path):
    """The driver is closed after the command runs."""
    with patch("schema_builder.cli.create_driver") as mock_create:
        assert main(["--path", str(tmp_path), "status"]) == 0

    mock_create.return_value.close.assert_called_once()


def test_generated_migrations_run_on_default_provider(tmp_path, monkeypatch, capsys):
    """Files made by the CLI migrate and roll back on the default SQLite provider."""
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "app.db"))
    target = tmp_path / "migrations"

    assert main(["--path", str(target), "make", "create_widgets_table"]) == 0
    assert main(["--path", str(target), "make", "create_gadgets_table", "-f", "name:string"]) == 0
    assert main(["--path", str(target), "migrate"]) == 0
    assert main(["--path", str(target), "status"]) == 0
    assert capsys.readouterr().out.count("Y  ") == 2

    assert main(["--path", str(target), "rollback"]) == 0
    assert main(["--path", str(target), "status"]) == 0
    assert capsys.readouterr().out.count("N  ") == 2
