import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_config_logger = logging.getLogger(__name__)

_PROJECT_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _PROJECT_DIR / ".env",
    ".env",
)
_LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL", "SILENT"})


class Settings(BaseSettings):
    """Client settings loaded from WEB3ANALYTICS_* environment variables."""

    # Runtime configuration supplied by the embedding application
    app_id: str = ""
    json_rpc_url: str = "http://localhost:8545"
    log_level: str = "ERROR"

    # Logging — per-category log levels
    log_level_http: str = "WARNING"          # httpx / httpcore — outbound HTTP
    log_level_sql: str = "WARNING"           # sqlalchemy.engine — local storage
    log_level_relay: str = "WARNING"         # gas relay client

    # Deployment constants
    contract_address: str = "0x25874Dd2dE546eF0D9c0D247Ea6CA0AF1F362941"
    paymaster_address: str = "0x487316eff97A1F71dd1779FEb5D1265a5C0E11aD"
    relay_url: str = "http://localhost:8090"
    registration_gas_limit: int = 1_000_000
    document_store_url: str = "https://ceramic-clay.3boxlabs.com"
    storage_url: str = "sqlite:///web3analytics.db"

    # Collector app
    app_title: str = "Web3 Analytics Collector"
    app_version: str = "0.1.0"
    app_env: str = "development"

    model_config = {
        "env_prefix": "WEB3ANALYTICS_",
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def model_post_init(self, __context: object) -> None:
        """Drop an unrecognised log level instead of failing startup."""
        if self.log_level.upper() not in _LOG_LEVELS:
            _config_logger.warning("Ignoring unknown log level %r", self.log_level)
            object.__setattr__(self, "log_level", "ERROR")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
