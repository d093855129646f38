"""Configuration settings for the Hevy importer."""
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from hevy_importer.errors import ConfigurationError


logger = logging.getLogger(__name__)

ProviderType = Literal["airia", "anthropic", "openai"]

DEFAULT_CONFIG_DIR = Path.home() / ".hevy-importer"
CONFIG_FILENAME = "config.json"

DEFAULT_AIRIA_BASE_URL = "https://dev.api.airiadev.ai"
DEFAULT_HEVY_BASE_URL = "https://api.hevyapp.com/v1"

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Config file keys (camelCase)
_FILE_KEYS = {
    "HEVY_API_KEY": "hevyApiKey",
    "AIRIA_API_KEY": "airiaApiKey",
    "AIRIA_PIPELINE_ID": "airiaPipelineId",
    "ANTHROPIC_API_KEY": "anthropicApiKey",
    "OPENAI_API_KEY": "openaiApiKey",
    "EXTRACTION_PROVIDER": "extractionProvider",
}


def get_config_dir() -> Path:
    """Directory holding the config file (HEVY_IMPORTER_CONFIG_DIR overrides)."""
    override = os.getenv("HEVY_IMPORTER_CONFIG_DIR")
    return Path(override) if override else DEFAULT_CONFIG_DIR


class ConfigStore:
    """Reads and writes the JSON config file."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()
        self.config_file = self.config_dir / CONFIG_FILENAME

    def load(self) -> Dict[str, Any]:
        """Load the config file; a missing or unreadable file yields an empty config."""
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load config file {self.config_file}, using defaults: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Config file {self.config_file} is not a JSON object, using defaults")
            return {}
        return data

    def save(self, data: Dict[str, Any]) -> None:
        """Write the config file, creating its directory if needed."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Failed to save config: {e}") from e


class Settings:
    """Application settings.

    Environment variables take precedence over values saved by ``setup``.
    """

    # Extraction provider
    EXTRACTION_PROVIDER: ProviderType = "airia"

    # API Keys
    HEVY_API_KEY: Optional[str] = None
    AIRIA_API_KEY: Optional[str] = None
    AIRIA_PIPELINE_ID: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None

    # Endpoints
    AIRIA_BASE_URL: str = DEFAULT_AIRIA_BASE_URL
    HEVY_BASE_URL: str = DEFAULT_HEVY_BASE_URL

    LOG_LEVEL: str = "INFO"

    def __init__(self, store: Optional[ConfigStore] = None):
        self.store = store or ConfigStore()
        file_config = self.store.load()

        def _get(name: str) -> Optional[str]:
            value = os.getenv(name)
            if value:
                return value
            file_key = _FILE_KEYS.get(name)
            if file_key and file_config.get(file_key):
                return str(file_config[file_key])
            return None

        # API Keys
        self.HEVY_API_KEY = _get("HEVY_API_KEY")
        self.AIRIA_API_KEY = _get("AIRIA_API_KEY")
        self.AIRIA_PIPELINE_ID = _get("AIRIA_PIPELINE_ID")
        self.ANTHROPIC_API_KEY = _get("ANTHROPIC_API_KEY")
        self.OPENAI_API_KEY = _get("OPENAI_API_KEY")

        provider = (_get("EXTRACTION_PROVIDER") or "airia").lower()
        if provider in ("airia", "anthropic", "openai"):
            self.EXTRACTION_PROVIDER = provider  # type: ignore
        else:
            logger.warning(f"Unknown EXTRACTION_PROVIDER '{provider}', falling back to airia")
            self.EXTRACTION_PROVIDER = "airia"

        # Endpoints
        self.AIRIA_BASE_URL = os.getenv("AIRIA_BASE_URL", DEFAULT_AIRIA_BASE_URL).rstrip("/")
        self.HEVY_BASE_URL = os.getenv("HEVY_BASE_URL", DEFAULT_HEVY_BASE_URL).rstrip("/")

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    def missing_keys(self) -> list:
        """Names of the settings the configured provider still needs."""
        required = ["HEVY_API_KEY"]
        if self.EXTRACTION_PROVIDER == "airia":
            required += ["AIRIA_API_KEY", "AIRIA_PIPELINE_ID"]
        elif self.EXTRACTION_PROVIDER == "anthropic":
            required.append("ANTHROPIC_API_KEY")
        else:
            required.append("OPENAI_API_KEY")
        return [name for name in required if not getattr(self, name)]

    def has_required_keys(self) -> bool:
        return not self.missing_keys()

    def save(self) -> None:
        """Persist the current keys to the config file."""
        data = self.store.load()
        for name, file_key in _FILE_KEYS.items():
            value = getattr(self, name)
            if value:
                data[file_key] = value
        self.store.save(data)


def validate_hevy_api_key(key: str) -> bool:
    """Hevy API keys are UUIDs."""
    return bool(_UUID_PATTERN.match(key.strip()))


def validate_airia_api_key(key: str) -> bool:
    return len(key.strip()) > 10


settings = Settings()
