"""Configuration loading utilities for YAML-based driver settings."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..drivers import DriverRegistry, MemoryDriver, default_registry
from ..exceptions import ConfigurationError
from .logging_config import get_logger, setup_logging


logger = get_logger(__name__)
_DEFAULT_CONFIG_PATH = Path("config.yml")


@dataclass(frozen=True)
class AppSettings:
    """Driver and logging settings loaded from a YAML configuration file."""

    log_level: str = "INFO"
    default_driver: str = "memory"
    memory_enabled: bool = True
    mongodb_enabled: bool = False
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "docmapper"
    mongodb_timeout_ms: int = 5000
    firestore_enabled: bool = False
    firestore_project_id: Optional[str] = None
    firestore_credentials_path: Optional[str] = None


def _to_bool(value: Any, default: bool = False) -> bool:
    """Convert value to bool with a default fallback."""
    try:
        if isinstance(value, bool):
            return value
        return value.strip().lower() in {"1", "true", "yes", "on"}
    except (AttributeError, ValueError):
        logger.warning("Invalid boolean value '%s'. Using default=%s", value, default)
        return default


def _to_int(value: Any, default: int) -> int:
    """Convert value to int with a default fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid integer value '%s'. Using default=%s", value, default)
        return default


def _read_config(path: Path) -> dict:
    """Read and parse YAML configuration."""
    try:
        with path.open("r", encoding="utf-8") as config_file:
            config_data = yaml.safe_load(config_file) or {}
        logger.info("Configuration loaded from %s", path)
    except FileNotFoundError:
        logger.warning("Config file not found at %s. Falling back to defaults.", path)
        return {}
    except yaml.YAMLError as exc:
        logger.exception("Failed to parse config file %s", path)
        raise ConfigurationError("Invalid configuration file {0}".format(path), exc)
    if not isinstance(config_data, dict):
        raise ConfigurationError("Configuration file {0} must contain a mapping".format(path))
    return config_data


def load_settings(path: Optional[Union[str, Path]] = None) -> AppSettings:
    """Load settings from ``path`` (default: ``config.yml`` in the working directory)."""
    defaults = AppSettings()
    config = _read_config(Path(path) if path is not None else _DEFAULT_CONFIG_PATH)
    logging_cfg = config.get("logging") or {}
    drivers_cfg = config.get("drivers") or {}
    memory_cfg = drivers_cfg.get("memory") or {}
    mongodb_cfg = drivers_cfg.get("mongodb") or {}
    firestore_cfg = drivers_cfg.get("firestore") or {}

    return AppSettings(
        log_level=str(logging_cfg.get("level", defaults.log_level)).upper(),
        default_driver=str(drivers_cfg.get("default", defaults.default_driver)),
        memory_enabled=_to_bool(memory_cfg.get("enabled", defaults.memory_enabled), defaults.memory_enabled),
        mongodb_enabled=_to_bool(mongodb_cfg.get("enabled", False), False),
        mongodb_uri=str(mongodb_cfg.get("uri", defaults.mongodb_uri)),
        mongodb_database=str(mongodb_cfg.get("database", defaults.mongodb_database)),
        mongodb_timeout_ms=_to_int(mongodb_cfg.get("timeout_ms", defaults.mongodb_timeout_ms), defaults.mongodb_timeout_ms),
        firestore_enabled=_to_bool(firestore_cfg.get("enabled", False), False),
        firestore_project_id=firestore_cfg.get("project_id"),
        firestore_credentials_path=firestore_cfg.get("credentials_path"),
    )


def configure_drivers(settings: AppSettings, registry: Optional[DriverRegistry] = None) -> DriverRegistry:
    """Build every enabled driver and register it under its backend name.

    Returns:
        DriverRegistry: The registry the drivers were added to.

    Raises:
        ConfigurationError: If the default driver is not among the enabled ones.
    """
    registry = registry if registry is not None else default_registry
    if settings.memory_enabled:
        registry.register("memory", MemoryDriver())
    if settings.mongodb_enabled:
        from pymongo import MongoClient

        from ..drivers.mongodb import MongoDBDriver

        client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=settings.mongodb_timeout_ms)
        registry.register("mongodb", MongoDBDriver(client[settings.mongodb_database]))
    if settings.firestore_enabled:
        from ..drivers.firestore import FirestoreDriver

        registry.register(
            "firestore",
            FirestoreDriver(
                project_id=settings.firestore_project_id,
                credentials_path=settings.firestore_credentials_path,
            ),
        )
    if settings.default_driver not in registry:
        raise ConfigurationError(
            "Default driver {0} is not enabled".format(settings.default_driver),
        )
    registry.register("default", registry.instance(settings.default_driver))
    logger.info("Registered drivers: %s", ", ".join(registry.names()))
    return registry


def bootstrap(path: Optional[Union[str, Path]] = None, registry: Optional[DriverRegistry] = None) -> AppSettings:
    """Load settings, configure logging and register the enabled drivers."""
    settings = load_settings(path)
    setup_logging(settings.log_level)
    configure_drivers(settings, registry)
    return settings
