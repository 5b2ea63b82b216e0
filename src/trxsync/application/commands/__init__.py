"""Application commands."""

from trxsync.application.commands.import_command import ImportCommand

__all__ = ["ImportCommand"]
