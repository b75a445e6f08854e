"""System information detection for host-hardener."""

import os
from typing import Iterable, List, Optional

from host_hardener.types import InitSystem
from host_hardener.utils.command import CommandExecutor

REQUIRED_COMMANDS = (
    "apt-get",
    "getent",
    "useradd",
    "usermod",
    "chpasswd",
    "chown",
)


class SystemInfo:
    """Detect and store system capabilities."""

    def __init__(self, executor: Optional[CommandExecutor] = None) -> None:
        """Initialize system information detection."""
        self.executor = executor or CommandExecutor()
        self.is_root = os.geteuid() == 0
        self.init_system = self._detect_init_system()

    def _detect_init_system(self) -> InitSystem:
        """Detect init system."""
        if self.executor.check_command_available("systemctl"):
            return InitSystem.SYSTEMD
        if self.executor.check_command_available("service"):
            return InitSystem.SYSVINIT
        return InitSystem.UNKNOWN

    def missing_commands(self, commands: Iterable[str] = REQUIRED_COMMANDS) -> List[str]:
        """Return the commands from ``commands`` that are not installed."""
        return [cmd for cmd in commands if not self.executor.check_command_available(cmd)]

    def check_requirements(self) -> List[str]:
        """Check if system meets minimum requirements."""
        issues: List[str] = []

        if not self.is_root:
            issues.append("Must be run as root")

        missing = self.missing_commands()
        if missing:
            issues.append(f"Missing required commands: {', '.join(missing)}")

        if self.init_system == InitSystem.UNKNOWN:
            issues.append("Cannot detect init system (need systemctl or service)")

        return issues
