"""Utility modules for slimctl.

This module exports commonly used utility functions.
"""

from slimctl.utils.formatting import (
    console,
    create_result_table,
    err_console,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from slimctl.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "create_result_table",
    "err_console",
    "format_size",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
