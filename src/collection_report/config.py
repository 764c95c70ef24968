"""
Configuration management for collection run reports.
"""

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Module-level lock for thread-safe config loading
_config_lock = threading.Lock()

REPORT_FORMATS = ["html", "json", "console"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


@dataclass
class ReporterConfig:
    """Reporter options.

    ``template`` and ``export`` are passed through untouched: the first is
    the path of a custom HTML template, the second the path the host should
    write the report to.

    Example config YAML::

        template: templates/custom.html
        export: reports/run.html
        report_format: html
        title: Nightly API checks
        log_level: WARNING
    """

    template: Optional[str] = None
    export: Optional[str] = None
    report_format: str = "html"  # html, json, console
    title: str = "Collection Run Report"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        """Normalize values read from YAML or the environment."""
        if isinstance(self.report_format, str):
            self.report_format = self.report_format.strip().lower()
        if isinstance(self.log_level, str):
            self.log_level = self.log_level.strip().upper()


def load_config(config_file: Optional[str] = None) -> ReporterConfig:
    """
    Load configuration from file and environment variables.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. Configuration file
    3. Default values

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        ReporterConfig object with merged configuration

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
        ConfigurationError: If the config file has invalid YAML or unknown keys
    """
    with _config_lock:
        config_data: Dict[str, Any] = {}

        if config_file:
            logger.info("Loading configuration from %s", config_file)
            try:
                with open(config_file, "r") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file '{config_file}': {e}")
            except FileNotFoundError:
                raise FileNotFoundError(f"Configuration file not found: {config_file}")
            except PermissionError:
                raise ConfigurationError(f"Permission denied reading config file '{config_file}'")
            except OSError as e:
                raise ConfigurationError(f"Unable to read config file '{config_file}': {e}")

            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Config file '{config_file}' must contain a mapping, "
                    f"got {type(file_config).__name__}"
                )
            config_data.update(file_config)

        env_overrides = _load_from_env()
        config_data.update(env_overrides)
        if env_overrides:
            logger.debug("Applied environment variable overrides: %s", list(env_overrides.keys()))

        try:
            return ReporterConfig(**config_data)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")


def _load_from_env() -> Dict[str, Any]:
    """
    Load configuration from environment variables.

    Supported environment variables:
    - RUN_REPORT_TEMPLATE: Path to a custom HTML template
    - RUN_REPORT_EXPORT: Path to write the report to
    - RUN_REPORT_FORMAT: Report format (html, json, console)
    - RUN_REPORT_TITLE: Report title
    - RUN_REPORT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Dictionary of configuration values from environment
    """
    env_config: Dict[str, Any] = {}

    if "RUN_REPORT_TEMPLATE" in os.environ:
        env_config["template"] = os.environ["RUN_REPORT_TEMPLATE"]

    if "RUN_REPORT_EXPORT" in os.environ:
        env_config["export"] = os.environ["RUN_REPORT_EXPORT"]

    if "RUN_REPORT_FORMAT" in os.environ:
        env_config["report_format"] = os.environ["RUN_REPORT_FORMAT"]

    if "RUN_REPORT_TITLE" in os.environ:
        env_config["title"] = os.environ["RUN_REPORT_TITLE"]

    if "RUN_REPORT_LOG_LEVEL" in os.environ:
        env_config["log_level"] = os.environ["RUN_REPORT_LOG_LEVEL"]

    return env_config


def validate_config(config: ReporterConfig) -> List[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: ReporterConfig to validate

    Returns:
        List of error messages (empty if valid)
    """
    errors: List[str] = []

    if config.report_format not in REPORT_FORMATS:
        errors.append(f"report_format must be one of {REPORT_FORMATS}: {config.report_format}")

    if config.log_level not in LOG_LEVELS:
        errors.append(f"log_level must be one of {LOG_LEVELS}: {config.log_level}")

    if config.template is not None:
        if not config.template:
            errors.append("template must not be empty when set")
        elif config.report_format != "html":
            errors.append(
                f"template is only used by the html format, not {config.report_format}"
            )
        elif not os.path.isfile(config.template):
            errors.append(f"template file not found: {config.template}")

    if config.export is not None and not config.export:
        errors.append("export must not be empty when set")

    if not config.title:
        errors.append("title is required")

    return errors
