# config/settings.py
"""
Configuration management for the semantic query layer.
Values come from the environment (a local .env file is loaded first).
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass
class DatabaseSettings:
    """PostgreSQL connection and pool configuration."""
    host: str = field(default_factory=lambda: os.getenv("DB_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("DB_PORT", "5432")))
    database: str = field(default_factory=lambda: os.getenv("DB_NAME", "northwind"))
    user: str = field(default_factory=lambda: os.getenv("DB_USER", "postgres"))
    password: str = field(default_factory=lambda: os.getenv("DB_PASSWORD", ""))
    schema: str = field(default_factory=lambda: os.getenv("DB_SCHEMA", "public"))

    # Pool sizing
    min_connections: int = field(default_factory=lambda: int(os.getenv("DB_POOL_MIN", "1")))
    max_connections: int = field(default_factory=lambda: int(os.getenv("DB_POOL_MAX", "10")))

    # 0 disables the server-side timeout
    statement_timeout_ms: int = field(default_factory=lambda: int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "0")))

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> "DatabaseSettings":
        """Build settings from a connect() payload, falling back to the environment."""
        config = config or {}
        known = {f.name for f in fields(cls)}
        overrides = {key: value for key, value in config.items() if key in known and value is not None}
        return cls(**overrides)

    def connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for psycopg2.connect / the connection pool."""
        kwargs = {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.user,
            "password": self.password,
        }
        if self.statement_timeout_ms:
            kwargs["options"] = f"-c statement_timeout={self.statement_timeout_ms}"
        return kwargs


@dataclass
class AppSettings:
    """Top-level settings for the API and scripts."""
    backend: str = field(default_factory=lambda: os.getenv("DB_BACKEND", "postgresql"))
    metadata_path: Optional[str] = field(default_factory=lambda: os.getenv("METADATA_PATH") or None)
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    database: DatabaseSettings = field(default_factory=DatabaseSettings)


# Global settings instance
settings = AppSettings()
