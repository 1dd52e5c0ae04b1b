"""rfqintel configuration management.

Loads configuration from environment variables with sensible defaults.
Dimensions are normalized to centimeters; volumes are reported in CBM.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

SUPPORTED_DIMENSION_UNITS = ("mm", "cm", "m", "in")


@dataclass
class DBConfig:
    """Database connection configuration."""

    url: str
    pool_size: int = 10
    pool_max_overflow: int = 20
    pool_timeout: int = 30
    echo: bool = False  # SQL logging


@dataclass
class DimensionConfig:
    """Dimension normalization limits."""

    max_dimension_cm: float = 5000.0  # 50 meters
    default_unit: str = "cm"


@dataclass
class NotificationsConfig:
    """Supplier notification fan-out settings."""

    enabled: bool = True
    sink: str = "log"  # log, webhook, queue
    supplier_timeout_seconds: float = 5.0
    webhook_url: str | None = None
    redis_url: str = "redis://localhost:6379"


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    log_level: str = "INFO"

    dimensions: DimensionConfig = field(default_factory=DimensionConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: SQLAlchemy async connection string

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - MAX_DIMENSION_CM: Upper bound for any axis (default: 5000)
        - SUPPLIER_NOTIFY_SINK: log, webhook or queue (default: "log")

        Raises:
            KeyError: If required environment variables are missing
            ValueError: If DEFAULT_DIMENSION_UNIT or SUPPLIER_NOTIFY_SINK is not recognised
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite+aiosqlite:///./rfqintel.db"
            )

        default_unit = os.getenv("DEFAULT_DIMENSION_UNIT", "cm").strip().lower()
        if default_unit not in SUPPORTED_DIMENSION_UNITS:
            raise ValueError(
                f"DEFAULT_DIMENSION_UNIT must be one of {', '.join(SUPPORTED_DIMENSION_UNITS)}"
            )

        sink = os.getenv("SUPPLIER_NOTIFY_SINK", "log").strip().lower()
        if sink not in ("log", "webhook", "queue"):
            raise ValueError("SUPPLIER_NOTIFY_SINK must be one of log, webhook, queue")

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            db=DBConfig(
                url=database_url,
                pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
                pool_max_overflow=int(os.getenv("DB_POOL_MAX_OVERFLOW", "20")),
                pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            dimensions=DimensionConfig(
                max_dimension_cm=float(os.getenv("MAX_DIMENSION_CM", "5000")),
                default_unit=default_unit,
            ),
            notifications=NotificationsConfig(
                enabled=os.getenv("SUPPLIER_NOTIFICATIONS_ENABLED", "true").lower()
                == "true",
                sink=sink,
                supplier_timeout_seconds=float(
                    os.getenv("SUPPLIER_NOTIFY_TIMEOUT_SECONDS", "5.0")
                ),
                webhook_url=os.getenv("SUPPLIER_WEBHOOK_URL"),
                redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            ),
        )

    @property
    def config_root(self) -> Path:
        """Root directory for policy files (timeline keywords YAML)."""
        return Path(__file__).parent.parent / "config"

    @property
    def timeline_keywords_path(self) -> Path:
        """Path to timeline_keywords.yaml."""
        return self.config_root / "timeline_keywords.yaml"


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config
