import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from common.config.env import get_env_str
from dal.factory import create_driver
from schema_builder.migrator import Migrator

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_PATH = "database/migrations"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Schema migration CLI")
    parser.add_argument(
        "--path",
        default=None,
        help=f"Migrations directory (default: $MIGRATIONS_PATH or {DEFAULT_MIGRATIONS_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    make_parser = subparsers.add_parser("make", help="Create a new migration file")
    make_parser.add_argument("name", help="Migration name (e.g. create_users_table)")
    make_parser.add_argument(
        "-f",
        "--fields",
        default=None,
        help="Fields as name:type[:params],... (e.g. name:string,status:enum:draft:sent)",
    )
    make_parser.add_argument(
        "-t",
        "--table",
        default=None,
        help="Table name (derived from the migration name when omitted)",
    )
    make_parser.add_argument(
        "--type",
        dest="kind",
        default="auto",
        choices=["auto", "create", "alter", "custom"],
        help="Migration type (default: auto)",
    )

    subparsers.add_parser("migrate", help="Apply pending migrations")

    rollback_parser = subparsers.add_parser("rollback", help="Revert applied migrations")
    rollback_parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Number of migrations to revert (default: all)",
    )

    subparsers.add_parser("status", help="List migrations and whether they are applied")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the migration CLI."""
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    migrations_path = args.path or get_env_str("MIGRATIONS_PATH", DEFAULT_MIGRATIONS_PATH)
    driver = create_driver()
    try:
        migrator = Migrator(migrations_path, driver)
        if args.command == "make":
            record = migrator.make(args.name, fields=args.fields, table=args.table, kind=args.kind)
            logger.info(f"Migration created: {record.path}")
        elif args.command == "migrate":
            migrator.migrate()
        elif args.command == "rollback":
            migrator.rollback(args.steps)
        elif args.command == "status":
            for name, applied in migrator.status():
                print(f"{'Y' if applied else 'N'}  {name}")
    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        return 1
    finally:
        driver.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
