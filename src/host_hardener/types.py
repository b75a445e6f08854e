"""Type definitions for host-hardener."""

from enum import Enum
from typing import NamedTuple


class InitSystem(str, Enum):
    """Service managers the restart logic knows how to drive."""

    SYSTEMD = "systemd"
    SYSVINIT = "sysvinit"
    UNKNOWN = "unknown"


class ListenerTool(str, Enum):
    """Socket-table inspection tools, in order of preference."""

    SS = "ss"
    NETSTAT = "netstat"


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    START = "start"
    PRIVILEGE_CHECK = "privilege_check"
    PACKAGES_UPDATED = "packages_updated"
    IDENTITY_COLLECTED = "identity_collected"
    ACCOUNT_CREATED = "account_created"
    PORT_CHOSEN = "port_chosen"
    SSH_HARDENED = "ssh_hardened"
    INSECURE_CONFIGS_SCANNED = "insecure_configs_scanned"
    FIREWALL_CONFIGURED = "firewall_configured"
    BAN_DAEMON_CONFIGURED = "ban_daemon_configured"
    DONE = "done"
    ABORTED = "aborted"


class CommandResult(NamedTuple):
    """Result of command execution."""

    success: bool
    stdout: str
    stderr: str
    return_code: int = 0


class BackupRecord(NamedTuple):
    """A backup copy taken before a file was modified."""

    original_path: str
    backup_path: str
    timestamp: str


class HardeningSummary(NamedTuple):
    """Facts handed to the summary printer."""

    ssh_port: int
    username: str
    firewall_enabled: bool
    ban_daemon_enabled: bool
