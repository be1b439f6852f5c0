"""
capfs Bootstrap

Builds a ready-to-use filesystem and dispatcher from configuration:
- Loading configuration
- Initializing logging
- Starting the scoped filesystem and command dispatcher

Author: YSNRFD
Version: 1.0.0
"""

from typing import Optional

from capfs.commands.dispatcher import CommandDispatcher
from capfs.core.config_loader import ConfigLoader
from capfs.filesystem.operations import ScopedFileSystem
from capfs.logger import get_logger


def create_filesystem(config_path: Optional[str] = None) -> ScopedFileSystem:
    """
    Load configuration, set up logging and start a ``ScopedFileSystem``.

    Args:
        config_path: Optional JSON configuration file; defaults apply
            when omitted

    Raises:
        ConfigLoadError: If the file cannot be loaded
        ConfigValidationError: If a value has the wrong shape
        ScopeConfigError: If a baseline pattern cannot be expanded
    """
    loader = ConfigLoader()
    if config_path is not None:
        loader.load(config_path)
    loader.configure_logging()

    fs = ScopedFileSystem(config=loader.config)
    fs.initialize()
    fs.start()

    get_logger('bootstrap').info(
        "Filesystem ready",
        context={'config': config_path or 'defaults'}
    )
    return fs


def create_dispatcher(config_path: Optional[str] = None) -> CommandDispatcher:
    """Factory function to create a started dispatcher over a new filesystem."""
    dispatcher = CommandDispatcher(create_filesystem(config_path))
    dispatcher.initialize()
    dispatcher.start()
    return dispatcher
