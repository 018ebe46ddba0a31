"""Shared utilities for SQL dialect handling."""

from typing import Iterable, Optional

# Map common aliases to the dialect names understood by sqlglot.
_DIALECT_ALIASES = {
    "mysql": "mysql",
    "mariadb": "mysql",
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
}

_IDENTIFIER_QUOTES = {
    "mysql": "`",
    "sqlite": '"',
}


def normalize_sqlglot_dialect(dialect: Optional[str]) -> str:
    """Normalize a dialect name for use with sqlglot.

    Args:
        dialect: The dialect name to normalize (e.g., 'MariaDB', 'sqlite3').

    Returns:
        A normalized lowercase dialect name, ``mysql`` when empty.
    """
    if not dialect:
        return "mysql"
    cleaned = dialect.lower().strip()
    return _DIALECT_ALIASES.get(cleaned, cleaned)


def quote_identifier(name: str, dialect: Optional[str] = "mysql") -> str:
    """Quote a single identifier, doubling any embedded quote character."""
    quote = _IDENTIFIER_QUOTES.get(normalize_sqlglot_dialect(dialect), '"')
    return f"{quote}{name.replace(quote, quote * 2)}{quote}"


def quote_identifiers(names: Iterable[str], dialect: Optional[str] = "mysql") -> str:
    """Quote and comma-join a list of identifiers."""
    return ", ".join(quote_identifier(name, dialect) for name in names)


def quote_string_literal(value: str) -> str:
    """Render a single-quoted SQL string literal."""
    return "'" + value.replace("'", "''") + "'"
