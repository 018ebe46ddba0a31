from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_int, get_env_str
from dal.util.env import get_provider_env

SUPPORTED_PROVIDERS = {"sqlite", "mysql"}


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for the configured database provider."""

    provider: str = "sqlite"
    host: Optional[str] = None
    port: int = 3306
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    charset: str = "utf8mb4"
    sqlite_path: str = ":memory:"

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Load database config from environment variables."""
        provider = get_provider_env("DB_PROVIDER", "sqlite", SUPPORTED_PROVIDERS)
        return cls(
            provider=provider,
            host=get_env_str("DB_HOST"),
            port=get_env_int("DB_PORT", 3306),
            database=get_env_str("DB_NAME"),
            user=get_env_str("DB_USER"),
            password=get_env_str("DB_PASSWORD"),
            charset=get_env_str("DB_CHARSET", "utf8mb4"),
            sqlite_path=get_env_str("SQLITE_DB_PATH", ":memory:"),
        )

    def require_server_settings(self) -> None:
        """Fail fast when a server-based provider is missing connection settings."""
        missing = [
            name
            for name, value in {
                "DB_HOST": self.host,
                "DB_NAME": self.database,
                "DB_USER": self.user,
            }.items()
            if not value
        ]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"{self.provider} database missing required config: {missing_list}. "
                "Set DB_HOST, DB_NAME, and DB_USER."
            )
