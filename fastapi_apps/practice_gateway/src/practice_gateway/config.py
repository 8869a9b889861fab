"""Gateway configuration using Pydantic Settings.

Values come from environment variables. An optional YAML file named by
GATEWAY_CONFIG_FILE supplies values for keys the environment leaves unset.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

LOG_PREFIX = "[practice_gateway.config]"


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables."""

    model_config = SettingsConfigDict(case_sensitive=True, env_file=None)

    # Application
    APP_NAME: str = "practice-gateway"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # CRM pass-through
    CRM_BASE_URL: str = "https://services.leadconnectorhq.com"
    CRM_API_TOKEN: Optional[SecretStr] = None
    CRM_API_VERSION: str = "2021-07-28"
    CRM_TIMEOUT_SECONDS: float = 10.0

    # Request coordination
    RATE_LIMIT_SECONDS: float = 2.0

    # Drafts
    DRAFT_STORAGE_DIR: Optional[str] = None
    DRAFT_KEY_PREFIX: str = "draft_"
    DRAFT_MAX_BYTES: Optional[int] = 5 * 1024 * 1024


def read_yaml_overrides(config_file: Path) -> Dict[str, Any]:
    """Read settings from a YAML mapping, skipping keys set in the environment."""
    logger.debug(f"{LOG_PREFIX} Parsing YAML file: {config_file}")
    data = yaml.safe_load(config_file.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{config_file} must contain a mapping, got {type(data).__name__}")
    return {key: value for key, value in data.items() if key not in os.environ}


def load_settings(config_file: Optional[str] = None) -> Settings:
    """
    Build settings from the environment plus an optional YAML file.

    Args:
        config_file: Path to a YAML file (default: GATEWAY_CONFIG_FILE env var)

    Returns:
        Validated Settings
    """
    path = config_file or os.environ.get("GATEWAY_CONFIG_FILE")
    if not path:
        return Settings()

    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"{LOG_PREFIX} Config file not found, using environment only: {config_path}")
        return Settings()

    overrides = read_yaml_overrides(config_path)
    logger.info(f"{LOG_PREFIX} Loaded {len(overrides)} settings from {config_path}")
    return Settings(**overrides)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
