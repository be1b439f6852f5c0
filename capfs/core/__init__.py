"""
capfs Core Module

- Subsystem lifecycle base
- Configuration loader
"""

from .subsystem import Subsystem, SubsystemState
from .config_loader import (
    ConfigLoader,
    Config,
    ScopeConfig,
    FilesystemConfig,
    LoggingConfig,
    get_config,
)

__all__ = [
    # Subsystem
    'Subsystem',
    'SubsystemState',
    # Config
    'ConfigLoader',
    'Config',
    'ScopeConfig',
    'FilesystemConfig',
    'LoggingConfig',
    'get_config',
]
