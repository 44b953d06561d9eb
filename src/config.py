"""Configuration management for the daily digest bot."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_AZURE_API_VERSION = "2023-05-15"
DEFAULT_LM_STUDIO_BASE_URL = "http://localhost:1234/v1"
DEFAULT_LM_STUDIO_MODEL = "default"

# Settings field -> environment variable
ENV_VARS: dict[str, str] = {
    "slack_bot_token": "SLACK_BOT_TOKEN",
    "use_lm_studio": "USE_LM_STUDIO",
    "azure_openai_endpoint": "AZURE_OPENAI_ENDPOINT",
    "azure_openai_api_key": "AZURE_OPENAI_API_KEY",
    "azure_openai_deployment": "AZURE_OPENAI_DEPLOYMENT_NAME",
    "azure_openai_api_version": "AZURE_OPENAI_API_VERSION",
    "lm_studio_base_url": "LM_STUDIO_BASE_URL",
    "lm_studio_model": "LM_STUDIO_MODEL",
    "interval_minutes": "DIGEST_INTERVAL_MINUTES",
    "run_on_startup": "DIGEST_RUN_ON_STARTUP",
    "tolerate_missing_users": "DIGEST_TOLERATE_MISSING_USERS",
}

SECRET_FIELDS = {"slack_bot_token", "azure_openai_api_key"}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        config_path = get_project_root() / "config" / "config.yaml"

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)
            return config_data if isinstance(config_data, dict) else {}
    except FileNotFoundError:
        logger.debug(f"Config file not found at {config_path}")
        return {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML config: {e}")
        return {}


class Settings(BaseModel):
    """Startup-resolved settings; static for the life of the process."""

    model_config = ConfigDict(frozen=True)

    slack_bot_token: str = ""
    use_lm_studio: bool = False

    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = ""
    azure_openai_api_version: str = DEFAULT_AZURE_API_VERSION

    lm_studio_base_url: str = DEFAULT_LM_STUDIO_BASE_URL
    lm_studio_model: str = DEFAULT_LM_STUDIO_MODEL

    interval_minutes: int = Field(5, ge=1, le=1440)
    run_on_startup: bool = True
    tolerate_missing_users: bool = False

    def redacted(self) -> dict[str, Any]:
        """Settings as a dict with secrets masked, safe to print."""
        data = self.model_dump()
        for key in SECRET_FIELDS:
            value = data.get(key) or ""
            if len(value) > 8:
                data[key] = f"{value[:4]}..."
            else:
                data[key] = "***" if value else ""
        return data


def _parse_bool(raw: str) -> bool | None:
    val = raw.strip().lower()
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    return None


def _env_overrides() -> dict[str, Any]:
    """Collect settings present in the environment."""
    overrides: dict[str, Any] = {}
    bool_fields = {
        name
        for name, field in Settings.model_fields.items()
        if field.annotation is bool
    }
    for name, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if raw is None or raw == "":
            continue
        if name in bool_fields:
            parsed = _parse_bool(raw)
            if parsed is None:
                logger.warning(f"Ignoring {env_var}={raw!r}: not a boolean")
                continue
            overrides[name] = parsed
        else:
            overrides[name] = raw
    return overrides


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Resolve settings from ``.env``, the YAML ``digest:`` section and the environment.

    Environment variables win over YAML values; missing values use the defaults.
    Raises RuntimeError when a value cannot be used.
    """
    load_dotenv()

    config_yaml = load_config(config_path)
    section = config_yaml.get("digest", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring 'digest' config section: expected a mapping")
        section = {}

    values = {k: v for k, v in section.items() if k in Settings.model_fields}
    unknown = sorted(set(section) - set(values))
    if unknown:
        logger.warning(f"Unknown digest config keys ignored: {', '.join(unknown)}")

    values.update(_env_overrides())
    try:
        return Settings(**values)
    except ValidationError as e:
        fields = ", ".join(
            ENV_VARS.get(str(err["loc"][0]), str(err["loc"][0])) for err in e.errors()
        )
        raise RuntimeError(f"Invalid configuration value(s): {fields}") from e
