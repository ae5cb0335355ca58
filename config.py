"""
Application configuration settings.

Centralizes all configuration parameters for the portfolio manager.
Supports environment-based configuration and sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    path: Path = field(default_factory=lambda: Path("db/portfolio.db"))

    @property
    def url(self) -> str:
        """SQLAlchemy connection URL."""
        # Prefer direct URL if provided in environment
        env_url = os.environ.get("PORTFOLIO_DB_URL") or os.environ.get("DATABASE_URL")
        if env_url:
            return env_url

        return f"sqlite:///{self.path}"


@dataclass(frozen=True)
class ServerConfig:
    """REST API server configuration."""
    host: str = "0.0.0.0"
    port: int = 5000
    environment: str = "production"

    api_title: str = "Portfolio Manager API"
    api_description: str = "Single-user REST API for stocks, bonds and cash flow"
    api_version: str = "1.0.0"

    # CORS
    frontend_origin: str = "http://localhost:3000"

    # Blanket per-IP rate limit
    rate_limit_enabled: bool = True
    rate_limit_window_seconds: int = 15 * 60  # 15 minutes
    rate_limit_max_requests: int = 100

    @property
    def is_development(self) -> bool:
        """Whether error details may be exposed in responses."""
        return self.environment.lower() == "development"


@dataclass(frozen=True)
class UserConfig:
    """
    Identity of the single portfolio owner.

    Every record is owned by this user; there is no login.
    """
    user_id: int = 1
    username: str = "portfolio_user"
    email: str = "user@portfolio.com"
    first_name: str = "Portfolio"
    last_name: str = "User"


@dataclass(frozen=True)
class AlertConfig:
    """Alert and reporting window thresholds."""
    # Stock price movement vs purchase price (percent)
    significant_move_pct: float = 20.0
    high_severity_move_pct: float = 50.0

    # Bond maturity windows (days)
    maturity_alert_days: int = 30
    maturity_high_severity_days: int = 7
    upcoming_maturity_days: int = 90

    # Cash flow window used by the portfolio overview (days)
    recent_cashflow_days: int = 30


@dataclass(frozen=True)
class UIConfig:
    """Dashboard UI configuration."""
    page_title: str = "Portfolio Manager"
    layout: str = "wide"

    # Number formatting
    decimal_places: int = 2
    percentage_decimal_places: int = 1

    # Rows shown in the cash flow ledger
    cashflow_page_size: int = 100


@dataclass
class Config:
    """
    Main configuration container.

    Usage:
        from config import config
        db_url = config.database.url
    """
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    user: UserConfig = field(default_factory=UserConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    # Base paths
    project_root: ClassVar[Path] = Path(__file__).parent

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create config from environment variables.

        Supports overrides via:
        - PORTFOLIO_DB_PATH: Custom SQLite database path
        - PORT: API server port
        - FRONTEND_URL: Allowed CORS origin
        - APP_ENV: "development" exposes error details in 500 responses
        """
        db_path_env = os.getenv("PORTFOLIO_DB_PATH")
        db_config = DatabaseConfig(
            path=Path(db_path_env) if db_path_env else DatabaseConfig().path
        )

        defaults = ServerConfig()
        server_config = ServerConfig(
            port=int(os.getenv("PORT", defaults.port)),
            environment=os.getenv("APP_ENV", defaults.environment),
            frontend_origin=os.getenv("FRONTEND_URL", defaults.frontend_origin),
        )

        return cls(database=db_config, server=server_config)


# Global config instance
config = Config.from_env()
