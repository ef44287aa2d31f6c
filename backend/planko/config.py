"""Configuration loader for Planko."""

import os
from pathlib import Path
from typing import Optional
import yaml
from pydantic import BaseModel


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False


class HttpsConfig(BaseModel):
    enabled: bool = False
    domain: str = "localhost"


class DatabaseConfig(BaseModel):
    path: str = "data/planko.db"


class SessionConfig(BaseModel):
    timeout_minutes: int = 60 * 24


class LoggingConfig(BaseModel):
    level: str = "info"
    # Optional log file written alongside stdout
    file: Optional[str] = None
    # Log every SQL statement (very noisy)
    sql_echo: bool = False


class SmtpConfig(BaseModel):
    enabled: bool = False
    host: str = ""
    port: int = 587
    username: str = ""
    password: str = ""
    from_email: str = ""
    from_name: str = "Planko"
    use_tls: bool = True


class AIConfig(BaseModel):
    """Configuration for AI subtask generation."""
    enabled: bool = False
    api_key: str = ""
    model: str = "gemini-flash-latest"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 30.0


class InviteConfig(BaseModel):
    # Public URL used to build invite links in emails
    app_url: str = "http://localhost:5173"
    link_ttl_hours: int = 24 * 7


class SyncConfig(BaseModel):
    """Client-side board synchronisation settings."""
    api_url: str = "http://localhost:8000"
    poll_interval_seconds: float = 30.0


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    https: HttpsConfig = HttpsConfig()
    database: DatabaseConfig = DatabaseConfig()
    session: SessionConfig = SessionConfig()
    logging: LoggingConfig = LoggingConfig()
    smtp: SmtpConfig = SmtpConfig()
    ai: AIConfig = AIConfig()
    invites: InviteConfig = InviteConfig()
    sync: SyncConfig = SyncConfig()


_config: Optional[Config] = None


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file and environment variables."""
    global _config

    if _config is not None:
        return _config

    if config_path is None:
        config_path = os.environ.get("PLANKO_CONFIG", "config.yml")

    config_data = {}

    if Path(config_path).exists():
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}

    config = Config(**config_data)

    # Override with environment variables
    if os.environ.get("PLANKO_DB_PATH"):
        config.database.path = os.environ["PLANKO_DB_PATH"]

    if os.environ.get("PLANKO_LOG_LEVEL"):
        config.logging.level = os.environ["PLANKO_LOG_LEVEL"]

    if os.environ.get("PLANKO_SMTP_HOST"):
        config.smtp.host = os.environ["PLANKO_SMTP_HOST"]
        config.smtp.enabled = True

    if os.environ.get("PLANKO_SMTP_PASSWORD"):
        config.smtp.password = os.environ["PLANKO_SMTP_PASSWORD"]

    # Auto-enable AI breakdown if an API key is set
    if os.environ.get("PLANKO_GEMINI_API_KEY"):
        config.ai.api_key = os.environ["PLANKO_GEMINI_API_KEY"]
        config.ai.enabled = True

    if os.environ.get("PLANKO_APP_URL"):
        config.invites.app_url = os.environ["PLANKO_APP_URL"]

    if os.environ.get("PLANKO_API_URL"):
        config.sync.api_url = os.environ["PLANKO_API_URL"]

    _config = config
    return config


def get_config() -> Config:
    """Get the loaded configuration."""
    global _config
    if _config is None:
        return load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the next call reloads it."""
    global _config
    _config = None
