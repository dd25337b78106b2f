import os
from dataclasses import dataclass

from sqlalchemy.engine import URL


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration for the stock service. Built once at start-up and
    handed to the database layer and the gateway explicitly.
    """

    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = ""
    db_name: str = "stocks"
    # Takes precedence over the individual connection parts when set.
    database_url: str | None = None

    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: float = 30.0
    # Seconds; 0 disables the per-statement deadline.
    query_timeout: float = 10.0
    create_schema: bool = False

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Reads the settings from environment variables, falling back to the
        defaults declared on the class.

        Returns:
            A populated settings object.
        """
        return cls(
            db_host=os.getenv("DB_HOST", cls.db_host),
            db_port=int(os.getenv("DB_PORT", cls.db_port)),
            db_user=os.getenv("DB_USER", cls.db_user),
            db_password=os.getenv("DB_PASSWORD", cls.db_password),
            db_name=os.getenv("DB_NAME", cls.db_name),
            database_url=os.getenv("DATABASE_URL") or None,
            pool_size=int(os.getenv("DB_POOL_SIZE", cls.pool_size)),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", cls.max_overflow)),
            pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", cls.pool_timeout)),
            query_timeout=float(os.getenv("DB_QUERY_TIMEOUT", cls.query_timeout)),
            create_schema=_get_bool("DB_CREATE_SCHEMA", cls.create_schema),
            host=os.getenv("HOST", cls.host),
            port=int(os.getenv("PORT", cls.port)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )

    @property
    def url(self) -> str | URL:
        """The SQLAlchemy connection URL for the configured database."""
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
        )

    @property
    def statement_timeout(self) -> float | None:
        return self.query_timeout if self.query_timeout > 0 else None
