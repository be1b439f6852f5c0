"""
capfs Configuration Loader

Configuration management for the filesystem access layer:
- JSON configuration file loading
- Configuration validation
- Default value handling
- Runtime configuration updates

Author: YSNRFD
Version: 1.0.0
"""

import json
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, List

from capfs.exceptions import ConfigLoadError, ConfigValidationError
from capfs.logger import Logger, LogLevel


@dataclass
class ScopeConfig:
    """Baseline allow/deny patterns applied to every call."""
    allow: List[str] = field(default_factory=list)
    deny: List[str] = field(default_factory=list)


@dataclass
class FilesystemConfig:
    """Filesystem operation settings."""
    line_buffer_size: int = 8192
    default_dir_mode: int = 0o777


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    log_file: Optional[str] = None
    console_output: bool = True


@dataclass
class Config:
    """
    Main configuration container.

    ``base_directories`` maps ``BaseDirectory`` names (``"Home"``,
    ``"AppConfig"``, ...) to concrete absolute paths.
    """
    scope: ScopeConfig = field(default_factory=ScopeConfig)
    base_directories: dict[str, str] = field(default_factory=dict)
    filesystem: FilesystemConfig = field(default_factory=FilesystemConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _string_list(value: Any, key: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigValidationError(f"Expected a list of strings for {key}", key=key)
    return list(value)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data[key]
    if not isinstance(value, dict):
        raise ConfigValidationError(f"Expected an object for {key}", key=key)
    return value


def _positive_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigValidationError(f"Expected a positive integer for {key}", key=key)
    return value


class ConfigLoader:
    """
    Configuration loader and manager.

    Example:
        >>> loader = ConfigLoader()
        >>> config = loader.load('capfs.json')
        >>> config.scope.allow
        ['$HOME/docs']
    """

    _instance: Optional['ConfigLoader'] = None
    _lock = threading.Lock()

    def __new__(cls) -> 'ConfigLoader':
        """Singleton pattern for configuration access."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._config = Config()
                cls._instance._loaded = False
            return cls._instance

    def load(self, config_path: str) -> Config:
        """
        Load configuration from a JSON file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Config object with loaded settings

        Raises:
            ConfigLoadError: If the file cannot be loaded or parsed
            ConfigValidationError: If a value has the wrong shape
        """
        path = Path(config_path)

        if not path.exists():
            raise ConfigLoadError(
                f"Configuration file not found: {config_path}",
                path=config_path
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigLoadError(
                f"Invalid JSON in configuration file: {e}",
                path=config_path
            ) from e
        except OSError as e:
            raise ConfigLoadError(
                f"Cannot read configuration file: {e}",
                path=config_path
            ) from e

        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration root must be an object")

        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def load_dict(self, data: dict[str, Any]) -> Config:
        """Load configuration from an already-parsed mapping."""
        self._config = self._parse_config(data)
        self._loaded = True
        return self._config

    def _parse_config(self, data: dict[str, Any]) -> Config:
        """Parse configuration data into Config object."""
        config = Config()

        if 'scope' in data:
            scope_data = _section(data, 'scope')
            config.scope = ScopeConfig(
                allow=_string_list(scope_data.get('allow', []), 'scope.allow'),
                deny=_string_list(scope_data.get('deny', []), 'scope.deny'),
            )

        if 'base_directories' in data:
            dirs = data['base_directories']
            if not isinstance(dirs, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in dirs.items()
            ):
                raise ConfigValidationError(
                    "Expected a mapping of names to paths for base_directories",
                    key='base_directories'
                )
            config.base_directories = dict(dirs)

        if 'filesystem' in data:
            fs_data = _section(data, 'filesystem')
            config.filesystem = FilesystemConfig(
                line_buffer_size=_positive_int(
                    fs_data.get('line_buffer_size', config.filesystem.line_buffer_size),
                    'filesystem.line_buffer_size'
                ),
                default_dir_mode=_positive_int(
                    fs_data.get('default_dir_mode', config.filesystem.default_dir_mode),
                    'filesystem.default_dir_mode'
                ) & 0o777,
            )

        if 'logging' in data:
            log_data = _section(data, 'logging')
            level = log_data.get('level', config.logging.level)
            if level not in LogLevel.__members__:
                raise ConfigValidationError(f"Unknown log level: {level}", key='logging.level')
            config.logging = LoggingConfig(
                level=level,
                log_file=log_data.get('log_file', config.logging.log_file),
                console_output=log_data.get('console_output', config.logging.console_output),
            )

        return config

    @property
    def config(self) -> Config:
        """Get the current configuration."""
        if not self._loaded:
            return Config()
        return self._config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-notation key.

        Args:
            key: Dot-notation key (e.g., 'scope.allow')
            default: Default value if key not found
        """
        obj: Any = self._config

        for part in key.split('.'):
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default

        return obj

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value at runtime.

        Note:
            This modifies configuration at runtime but does not
            persist changes to disk.
        """
        parts = key.split('.')
        obj: Any = self._config

        for part in parts[:-1]:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                raise ConfigValidationError(f"Invalid configuration key: {key}", key=key)

        final_key = parts[-1]
        if hasattr(obj, final_key):
            setattr(obj, final_key, value)
        else:
            raise ConfigValidationError(f"Invalid configuration key: {key}", key=key)

    def reload(self, config_path: str) -> Config:
        """Reload configuration from file."""
        return self.load(config_path)

    def reset(self) -> None:
        """Drop any loaded configuration and fall back to defaults."""
        self._config = Config()
        self._loaded = False

    def configure_logging(self) -> None:
        """Install log handlers according to the ``logging`` section."""
        settings = self.config.logging
        Logger.initialize(
            level=LogLevel[settings.level],
            log_file=settings.log_file,
            console_output=settings.console_output
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        def dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, '__dataclass_fields__'):
                return {
                    k: dataclass_to_dict(v)
                    for k, v in obj.__dict__.items()
                }
            elif isinstance(obj, list):
                return [dataclass_to_dict(item) for item in obj]
            elif isinstance(obj, dict):
                return {k: dataclass_to_dict(v) for k, v in obj.items()}
            else:
                return obj

        return dataclass_to_dict(self._config)


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config object with current settings
    """
    loader = ConfigLoader()
    return loader.config
