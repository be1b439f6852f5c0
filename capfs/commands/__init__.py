"""
capfs Command Interface Module

Provides command dispatching:
- Command table
- Command dispatcher
- Command results
"""

from .command_table import CommandName, HANDLE_COMMANDS
from .dispatcher import CommandDispatcher, CommandResult

__all__ = [
    'CommandName',
    'HANDLE_COMMANDS',
    'CommandDispatcher',
    'CommandResult',
]
