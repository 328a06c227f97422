"""
Configuration management for the CEP locality crawler.
"""

import os
import json
import logging
import threading
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, Optional

from jsonschema import validate, ValidationError

from cep_locality_crawler.utils.errors import ConfigurationError


DEFAULT_TARGET_URL = "https://www2.correios.com.br/sistemas/buscacep/buscaFaixaCep.cfm"


@dataclass
class BrowserConfig:
    """Browser launch settings."""
    headless: bool = True
    browser_type: str = "chromium"  # "chromium", "firefox" or "webkit"
    page_timeout_ms: int = 30000
    viewport_width: int = 1280
    viewport_height: int = 800
    locale: str = "pt-BR"
    user_agent: Optional[str] = None


@dataclass
class CrawlerConfig:
    """Crawl orchestration settings."""
    target_url: str = DEFAULT_TARGET_URL
    max_batch_size: int = 5
    pool_size: int = 5
    deadline_seconds: float = 60.0
    # The search page has no completion signal, so actions are followed by a fixed wait.
    settle_delay_seconds: float = 1.0
    poll_interval_seconds: float = 0.5
    cancel_grace_seconds: float = 5.0
    max_pages: int = 1000


@dataclass
class ServerConfig:
    """HTTP service settings."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class OutputConfig:
    """Result sink settings."""
    result_path: str = "result.jsonl"


@dataclass
class SystemConfig:
    """Main system configuration."""
    browser: BrowserConfig = field(default_factory=BrowserConfig)
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None


CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "browser": {
            "type": "object",
            "properties": {
                "headless": {"type": "boolean"},
                "browser_type": {"type": "string", "enum": ["chromium", "firefox", "webkit"]},
                "page_timeout_ms": {"type": "integer", "minimum": 1000, "maximum": 300000},
                "viewport_width": {"type": "integer", "minimum": 320, "maximum": 7680},
                "viewport_height": {"type": "integer", "minimum": 240, "maximum": 4320},
                "locale": {"type": "string", "minLength": 2},
                "user_agent": {"type": ["string", "null"]}
            },
            "additionalProperties": False
        },
        "crawler": {
            "type": "object",
            "properties": {
                "target_url": {"type": "string", "pattern": "^https?://"},
                "max_batch_size": {"type": "integer", "minimum": 1, "maximum": 27},
                "pool_size": {"type": "integer", "minimum": 1, "maximum": 27},
                "deadline_seconds": {"type": "number", "exclusiveMinimum": 0, "maximum": 3600},
                "settle_delay_seconds": {"type": "number", "minimum": 0, "maximum": 60},
                "poll_interval_seconds": {"type": "number", "exclusiveMinimum": 0, "maximum": 10},
                "cancel_grace_seconds": {"type": "number", "minimum": 0, "maximum": 120},
                "max_pages": {"type": "integer", "minimum": 1, "maximum": 100000}
            },
            "additionalProperties": False
        },
        "server": {
            "type": "object",
            "properties": {
                "host": {"type": "string", "minLength": 1},
                "port": {"type": "integer", "minimum": 1, "maximum": 65535}
            },
            "additionalProperties": False
        },
        "output": {
            "type": "object",
            "properties": {
                "result_path": {"type": "string", "minLength": 1}
            },
            "additionalProperties": False
        },
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        },
        "log_file": {"type": ["string", "null"]}
    },
    "additionalProperties": False
}


# Environment variable -> (section, key, converter)
ENV_OVERRIDES = {
    "CEP_CRAWLER_HEADLESS": ("browser", "headless", lambda v: v.lower() not in ("0", "false", "no")),
    "CEP_CRAWLER_BROWSER": ("browser", "browser_type", str),
    "CEP_CRAWLER_TARGET_URL": ("crawler", "target_url", str),
    "CEP_CRAWLER_POOL_SIZE": ("crawler", "pool_size", int),
    "CEP_CRAWLER_DEADLINE_SECONDS": ("crawler", "deadline_seconds", float),
    "CEP_CRAWLER_SETTLE_DELAY": ("crawler", "settle_delay_seconds", float),
    "CEP_CRAWLER_MAX_PAGES": ("crawler", "max_pages", int),
    "CEP_CRAWLER_HOST": ("server", "host", str),
    "CEP_CRAWLER_PORT": ("server", "port", int),
    "CEP_CRAWLER_RESULT_PATH": ("output", "result_path", str),
}


class ConfigManager:
    """Loads, validates and exports the system configuration."""

    def __init__(self, config_path: str = "config.json"):
        self.config_path = Path(config_path)
        self._config: Optional[SystemConfig] = None
        self._last_modified: Optional[float] = None
        self._lock = threading.RLock()

    def validate_config(self, config_data: Dict[str, Any]) -> None:
        """Validate configuration data against schema."""
        try:
            validate(instance=config_data, schema=CONFIG_SCHEMA)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}",
                                     {"path": list(e.absolute_path)})

    def load_config(self) -> SystemConfig:
        """Load configuration from file (if present), then apply environment overrides."""
        with self._lock:
            if self.config_path.exists():
                current_modified = self.config_path.stat().st_mtime
                if self._config is None or current_modified != self._last_modified:
                    self._load_from_file()
                    self._last_modified = current_modified
            elif self._config is None:
                self._config = SystemConfig()
                self._override_with_env_vars()
                logging.info("Configuration loaded from defaults and environment variables")

            return self._config

    def _load_from_file(self) -> None:
        """Load configuration from JSON file with validation."""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to read configuration file {self.config_path}",
                                     {"error": str(e)})

        self.validate_config(config_data)
        self._config = self._dict_to_config(config_data)
        self._override_with_env_vars()

        logging.info(f"Configuration loaded and validated from {self.config_path}")

    def _override_with_env_vars(self) -> None:
        """Override configuration with environment variables."""
        for env_name, (section, key, convert) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            try:
                value = convert(raw)
            except ValueError:
                raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}")
            setattr(getattr(self._config, section), key, value)

        if os.getenv("CEP_CRAWLER_LOG_LEVEL"):
            self._config.log_level = os.getenv("CEP_CRAWLER_LOG_LEVEL").upper()

    def _dict_to_config(self, data: Dict[str, Any]) -> SystemConfig:
        """Convert dictionary to SystemConfig object."""
        config = SystemConfig()

        if "browser" in data:
            config.browser = BrowserConfig(**data["browser"])
        if "crawler" in data:
            config.crawler = CrawlerConfig(**data["crawler"])
        if "server" in data:
            config.server = ServerConfig(**data["server"])
        if "output" in data:
            config.output = OutputConfig(**data["output"])

        config.log_level = data.get("log_level", config.log_level)
        config.log_file = data.get("log_file", config.log_file)

        return config

    def export_config(self) -> Dict[str, Any]:
        """Export current configuration as dictionary."""
        with self._lock:
            if not self._config:
                return {}

            return {
                "browser": asdict(self._config.browser),
                "crawler": asdict(self._config.crawler),
                "server": asdict(self._config.server),
                "output": asdict(self._config.output),
                "log_level": self._config.log_level,
                "log_file": self._config.log_file,
            }

    def save_config(self, config_path: Optional[str] = None) -> None:
        """Save current configuration to file."""
        with self._lock:
            if not self._config:
                raise ConfigurationError("No configuration loaded to save")

            save_path = Path(config_path) if config_path else self.config_path
            config_dict = self.export_config()
            self.validate_config(config_dict)

            with open(save_path, 'w', encoding='utf-8') as f:
                json.dump(config_dict, f, indent=2, ensure_ascii=False)

            logging.info(f"Configuration saved to {save_path}")


config_manager = ConfigManager(os.getenv("CEP_CRAWLER_CONFIG", "config.json"))


def get_config() -> SystemConfig:
    """Get the current system configuration."""
    return config_manager.load_config()


def reload_config() -> SystemConfig:
    """Force reload configuration and return updated config."""
    config_manager._config = None
    config_manager._last_modified = None
    return config_manager.load_config()
