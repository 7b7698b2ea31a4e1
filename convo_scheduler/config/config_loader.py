"""Load scheduler configuration from YAML."""

import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

from .config_schema import AppConfig

logger = logging.getLogger(__name__)

# Provider blocks may omit api_key when it is set in the environment
API_KEY_ENV_VARS = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


class ConfigLoader:
    """Reads a YAML file into a validated AppConfig."""

    @staticmethod
    def load_config(path: str = "config.yaml") -> AppConfig:
        """
        Load configuration from a YAML file.

        Args:
            path: Path to configuration file

        Returns:
            Validated AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file is empty, is not a mapping, or fails
                validation
        """
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        if not raw:
            raise ValueError("Configuration file is empty")
        if not isinstance(raw, dict):
            raise ValueError(f"Configuration root must be a mapping, got {type(raw).__name__}")

        config = ConfigLoader.from_dict(raw)
        logger.info(
            f"Loaded configuration from {path} "
            f"(provider: {config.llm.provider if config.llm else 'none'}, "
            f"assist mode: {config.scheduler.assist_mode})"
        )
        return config

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> AppConfig:
        """
        Build and validate an AppConfig from a plain dictionary.

        Missing provider API keys are filled from the environment.

        Raises:
            ValueError: If the configuration is invalid
        """
        config = AppConfig(**apply_env_api_keys(raw))
        config.validate()
        return config


def apply_env_api_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of raw with missing provider api_key values taken from the environment."""
    llm = raw.get("llm")
    if not isinstance(llm, dict):
        return raw

    llm = dict(llm)
    for provider, env_var in API_KEY_ENV_VARS.items():
        block = llm.get(provider)
        if isinstance(block, dict) and not block.get("api_key") and os.getenv(env_var):
            logger.debug(f"Using {env_var} for the {provider} api_key")
            llm[provider] = {**block, "api_key": os.getenv(env_var)}
    return {**raw, "llm": llm}


def load_config(path: str = "config.yaml") -> AppConfig:
    """Convenience wrapper around ConfigLoader.load_config."""
    return ConfigLoader.load_config(path)
