"""Provider normalization and environment variable helpers.

Canonical Provider IDs (internal, lowercase):
- "sqlite" - standard-library sqlite3 driver
- "mysql" - PyMySQL driver (MySQL and MariaDB)

Example:
    >>> normalize_provider("MariaDB")
    'mysql'
    >>> get_provider_env("DB_PROVIDER", "sqlite", {"sqlite", "mysql"})
    'sqlite'
"""

from typing import Set

# Alias mappings: user-friendly names -> canonical provider ID
PROVIDER_ALIASES: dict[str, str] = {
    "sqlite": "sqlite",
    "sqlite3": "sqlite",
    "mysql": "mysql",
    "mariadb": "mysql",
    "pymysql": "mysql",
}


def normalize_provider(value: str) -> str:
    """Normalize a provider value to its canonical form.

    Unknown values pass through lowercased and stripped; validation
    happens separately.
    """
    cleaned = value.strip().lower()
    return PROVIDER_ALIASES.get(cleaned, cleaned)


def get_provider_env(var_name: str, default: str, allowed: Set[str]) -> str:
    """Read and validate a provider environment variable.

    Raises:
        ValueError: If the normalized value is not in the allowed set.
    """
    from common.config.env import get_env_str

    raw_value = get_env_str(var_name)

    if raw_value is None:
        return default

    normalized = normalize_provider(raw_value)

    if normalized not in allowed:
        allowed_list = ", ".join(sorted(allowed))
        raise ValueError(
            f"Invalid provider for {var_name}: '{raw_value}'. " f"Allowed values: {allowed_list}"
        )

    return normalized
