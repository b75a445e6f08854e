"""Utility modules for host-hardener."""

from host_hardener.utils.command import CommandExecutor
from host_hardener.utils.file import FileManager
from host_hardener.utils.validation import Validator

__all__ = ["CommandExecutor", "FileManager", "Validator"]
