"""
CLI Commands.

Organized by resource domain. DEFINITIONS lists every API command in
registration order; system_app is the typer group for client housekeeping.
"""

from hostctl.cli.commands import backup, cloud_account
from hostctl.cli.commands.system import app as system_app

DEFINITIONS = (*cloud_account.COMMANDS, *backup.COMMANDS)

__all__ = [
    "DEFINITIONS",
    "system_app",
]
