"""Configuration loader for the module importer.

Loads configuration from:
1. Default values (hardcoded)
2. config.yaml file (if exists)
3. Environment variables (highest priority, .env is read first)

Environment variables use the pattern: MODIMPORT_SECTION__KEY
Examples:
    MODIMPORT_FIRESTORE__CREDENTIALS_PATH=/secrets/key.json
    MODIMPORT_FIXTURES__DIRECTORY=fixtures
    MODIMPORT_LOGGING__LEVEL=DEBUG
"""

import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .logging_config import get_logger

logger = get_logger('config')

ENV_PREFIX = "MODIMPORT_"

# Firestore rejects batched writes with more operations than this
MAX_BATCH_SIZE = 500


@dataclass
class FirestoreConfig:
    """Firestore connection configuration."""
    credentials_path: str = "serviceAccountKey.json"
    project_id: Optional[str] = None
    delete_batch_size: int = MAX_BATCH_SIZE


@dataclass
class CollectionsConfig:
    """Collection names used for modules and their children."""
    modules: str = "modules"
    fiches: str = "fichesSynthese"
    videos: str = "videos"
    quizzes: str = "quizzes"


@dataclass
class FixturesConfig:
    """Fixture file locations. A None directory means next to main.py."""
    directory: Optional[str] = None
    modules_file: str = "modules.json"
    fiches_pattern: str = "fiches_{module_id}.json"
    videos_pattern: str = "videos_{module_id}.json"
    quizzes_pattern: str = "quizzes_{module_id}.json"
    encoding: str = "utf-8-sig"


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    json_format: bool = False
    console: bool = True


@dataclass
class Config:
    """Main configuration container."""
    firestore: FirestoreConfig = field(default_factory=FirestoreConfig)
    collections: CollectionsConfig = field(default_factory=CollectionsConfig)
    fixtures: FixturesConfig = field(default_factory=FixturesConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


SECTIONS = {
    'firestore': FirestoreConfig,
    'collections': CollectionsConfig,
    'fixtures': FixturesConfig,
    'logging': LoggingConfig,
}


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dictionary."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _convert(key: str, value: str, original):
    """Convert an environment string to the type of the default value."""
    try:
        if isinstance(original, bool):
            return value.lower() in ('true', '1', 'yes')
        if isinstance(original, int):
            return int(value)
        if isinstance(original, float):
            return float(value)
    except ValueError:
        raise ConfigurationError(f"Invalid value {value!r} for {key}", config_key=key)
    return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply MODIMPORT_SECTION__KEY environment overrides."""
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        path = key[len(ENV_PREFIX):].lower().split("__")
        if len(path) < 2:
            continue

        current = config_dict
        for part in path[:-1]:
            if part not in current:
                current[part] = {}
            current = current[part]

        final_key = path[-1]
        if final_key in current:
            value = _convert(key, value, current[final_key])

        current[final_key] = value
        logger.debug(f"Applied env override: {key}")

    return config_dict


def _dict_to_config(config_dict: dict) -> Config:
    """Convert a dictionary to the Config dataclass, ignoring unknown keys."""
    sections = {}
    for name, section_cls in SECTIONS.items():
        values = config_dict.get(name) or {}
        sections[name] = section_cls(**{
            k: v for k, v in values.items()
            if k in section_cls.__dataclass_fields__
        })
    config = Config(**sections)

    batch_size = config.firestore.delete_batch_size
    if isinstance(batch_size, bool) or not isinstance(batch_size, int):
        raise ConfigurationError(
            f"delete_batch_size must be an integer, got {batch_size!r}",
            config_key='firestore.delete_batch_size'
        )
    if not 1 <= batch_size <= MAX_BATCH_SIZE:
        raise ConfigurationError(
            f"delete_batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}",
            config_key='firestore.delete_batch_size'
        )
    return config


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Path to config file. If None, searches for config.yaml
                    in the working directory and the project root.

    Returns:
        Config object with all settings loaded
    """
    load_dotenv()

    config_dict = asdict(Config())

    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent / "config.yaml",
            Path(__file__).parent.parent / "config.yml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path and Path(config_path).exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}
            if isinstance(file_config, dict):
                config_dict = _deep_update(config_dict, file_config)
                logger.debug(f"Loaded config from: {config_path}")
            else:
                logger.warning(f"Ignoring config file {config_path}: top level is not a mapping")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config file: {e}")

    config_dict = _apply_env_overrides(config_dict)

    return _dict_to_config(config_dict)


def resolve_path(value: Optional[str], base: Path) -> Path:
    """Resolve a configured path against base; None resolves to base itself."""
    if not value:
        return base
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return base / path


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance, loading it on first call."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> Config:
    """Reload configuration, clearing the cache."""
    global _config
    _config = load_config(config_path)
    return _config
