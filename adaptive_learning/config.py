"""
Configuration for the Adaptive Learning Engine.

Values come from built-in defaults, an optional YAML or JSON file and
environment variables, in increasing order of priority. Every section is a
pydantic model so bad values fail fast with a ``ConfigurationError``.
"""

import os
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, validator

from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.exceptions import ConfigurationError

logger = app_logger.getChild("config")

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
STORAGE_BACKENDS = ('memory', 'redis')
ENVIRONMENTS = ('development', 'testing', 'staging', 'production')


def _choice(value: str, allowed: Iterable[str], what: str) -> str:
    if value not in allowed:
        raise ValueError(f"Unknown {what} '{value}', expected one of {', '.join(allowed)}")
    return value


class LoggingConfig(BaseModel):
    """Log level, output format and optional log file"""
    level: str = Field(default="INFO")
    use_json: bool = Field(default=False)
    file_path: Optional[str] = Field(default=None)

    @validator('level')
    def check_level(cls, v):
        return _choice(v.upper(), LOG_LEVELS, "log level")


class StorageConfig(BaseModel):
    """Key-value persistence configuration"""
    backend: str = Field(default="memory")
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_password: Optional[str] = Field(default=None)
    key_prefix: str = Field(default="adaptive_learning:")
    max_sessions_retained: int = Field(default=100)
    retention_days: int = Field(default=180)

    @validator('backend')
    def check_backend(cls, v):
        return _choice(v.lower(), STORAGE_BACKENDS, "storage backend")

    @validator('max_sessions_retained', 'retention_days')
    def check_positive(cls, v):
        if v <= 0:
            raise ValueError(f"Retention limits must be positive, got {v}")
        return v


class AnalyticsConfig(BaseModel):
    """History windows (in days) used by the analytics queries"""
    insights_window_days: int = Field(default=30)
    trends_window_days: int = Field(default=90)
    metrics_window_days: int = Field(default=60)
    detection_window_days: int = Field(default=30)


class GenerationConfig(BaseModel):
    """Problem generation configuration"""
    random_seed: Optional[int] = Field(default=None)
    duplicate_retry_limit: int = Field(default=5)
    recent_problem_memory: int = Field(default=50)

    @validator('duplicate_retry_limit')
    def check_retry_limit(cls, v):
        if v < 0:
            raise ValueError(f"Retry limit cannot be negative, got {v}")
        return v


class APIConfig(BaseModel):
    """HTTP server settings"""
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    reload: bool = Field(default=False)
    prefix: str = Field(default="/api")


class EnvironmentConfig(BaseModel):
    """Deployment environment"""
    env: str = Field(default="development")

    @validator('env')
    def check_env(cls, v):
        return _choice(v.lower(), ENVIRONMENTS, "environment")


class AppConfig(BaseModel):
    """Root configuration object handed to ``create_app``"""
    app_name: str = Field(default="Adaptive Learning Engine")
    version: str = Field(default="1.0.0")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)

    @property
    def is_development(self) -> bool:
        return self.environment.env == "development"

    @property
    def is_production(self) -> bool:
        return self.environment.env == "production"


# Environment variable -> (section, field)
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "APP_NAME": ("", "app_name"),
    "APP_VERSION": ("", "version"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_JSON": ("logging", "use_json"),
    "LOG_FILE": ("logging", "file_path"),
    "STORAGE_BACKEND": ("storage", "backend"),
    "REDIS_HOST": ("storage", "redis_host"),
    "REDIS_PORT": ("storage", "redis_port"),
    "REDIS_DB": ("storage", "redis_db"),
    "REDIS_PASSWORD": ("storage", "redis_password"),
    "STORAGE_KEY_PREFIX": ("storage", "key_prefix"),
    "MAX_SESSIONS_RETAINED": ("storage", "max_sessions_retained"),
    "RETENTION_DAYS": ("storage", "retention_days"),
    "INSIGHTS_WINDOW_DAYS": ("analytics", "insights_window_days"),
    "TRENDS_WINDOW_DAYS": ("analytics", "trends_window_days"),
    "METRICS_WINDOW_DAYS": ("analytics", "metrics_window_days"),
    "DETECTION_WINDOW_DAYS": ("analytics", "detection_window_days"),
    "GENERATION_RANDOM_SEED": ("generation", "random_seed"),
    "DUPLICATE_RETRY_LIMIT": ("generation", "duplicate_retry_limit"),
    "RECENT_PROBLEM_MEMORY": ("generation", "recent_problem_memory"),
    "API_HOST": ("api", "host"),
    "API_PORT": ("api", "port"),
    "API_DEBUG": ("api", "debug"),
    "API_RELOAD": ("api", "reload"),
    "API_PREFIX": ("api", "prefix"),
    "ENV": ("environment", "env"),
}


class ConfigLoader:
    """
    Builds an ``AppConfig`` from a file and an environment mapping.

    Environment variables listed in ``ENV_OVERRIDES`` win over the file, which
    wins over the model defaults. The result is cached per loader.
    """

    def __init__(self, config_path: Optional[str] = None,
                 environ: Optional[Dict[str, str]] = None,
                 load_env_file: bool = True):
        """
        Args:
            config_path: YAML or JSON file; falls back to ``CONFIG_PATH``
            environ: Mapping to read overrides from (``os.environ`` when omitted)
            load_env_file: Load a ``.env`` file into ``os.environ`` first
        """
        if load_env_file and environ is None:
            load_dotenv()
        self.environ = os.environ if environ is None else environ
        self.config_path = config_path or self.environ.get("CONFIG_PATH")
        self._config: Optional[AppConfig] = None

    def load(self) -> AppConfig:
        """
        Merge every source into a validated configuration.

        Raises:
            ConfigurationError: If any merged value fails validation
        """
        if self._config is None:
            file_config = self._read_file(self.config_path) if self.config_path else {}
            merged = self._apply_env_overrides(file_config)
            try:
                self._config = AppConfig(**merged)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
        return self._config

    def _apply_env_overrides(self, file_config: Dict[str, Any]) -> Dict[str, Any]:
        merged = {key: (dict(value) if isinstance(value, dict) else value)
                  for key, value in file_config.items()}

        for env_name, (section, field_name) in ENV_OVERRIDES.items():
            raw = self.environ.get(env_name)
            if raw is None:
                continue
            if not section:
                merged[field_name] = raw
                continue
            section_values = merged.setdefault(section, {})
            if not isinstance(section_values, dict):
                raise ConfigurationError(
                    f"Section '{section}' must be a mapping", config_key=section
                )
            section_values[field_name] = raw
            logger.debug(f"Config override from {env_name} applied to {section}.{field_name}")

        return merged

    @staticmethod
    def _read_file(location: str) -> Dict[str, Any]:
        """Parse a YAML or JSON config file; anything unreadable yields ``{}``."""
        path = Path(location)
        if not path.is_file():
            logger.warning(f"Config file {path} does not exist, using defaults")
            return {}

        parsers = {'.yaml': yaml.safe_load, '.yml': yaml.safe_load, '.json': json.load}
        parse = parsers.get(path.suffix.lower())
        if parse is None:
            logger.warning(f"Ignoring config file {path}: unsupported format '{path.suffix}'")
            return {}

        try:
            with path.open() as handle:
                return parse(handle) or {}
        except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
            logger.error(f"Could not read config file {path}: {e}")
            return {}


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = ConfigLoader().load()
    return _config


def reload_config(config_path: Optional[str] = None) -> AppConfig:
    """Rebuild the process-wide configuration, optionally from ``config_path``."""
    global _config
    _config = ConfigLoader(config_path).load()
    return _config
