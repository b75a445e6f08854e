"""Pytest configuration and fixtures."""

import random
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from host_hardener.config import (
    AccountConfig,
    Fail2banConfig,
    HardenerConfig,
    LoggingConfig,
    SSHConfig,
)
from host_hardener.exceptions import CommandExecutionError
from host_hardener.ports import ListenerProbe
from host_hardener.types import CommandResult
from host_hardener.utils.command import CommandExecutor
from host_hardener.utils.file import FileManager

DEFAULT_COMMANDS = (
    "apt-get",
    "getent",
    "useradd",
    "usermod",
    "chpasswd",
    "chown",
    "systemctl",
    "service",
    "ss",
    "sshd",
)

SS_OUTPUT = """\
State  Recv-Q Send-Q  Local Address:Port   Peer Address:Port Process
LISTEN 0      128           0.0.0.0:22          0.0.0.0:*     users:(("sshd",pid=812,fd=3))
LISTEN 0      4096    127.0.0.53%lo:53          0.0.0.0:*     users:(("systemd-resolve",pid=600,fd=14))
LISTEN 0      128              [::]:22             [::]:*     users:(("sshd",pid=812,fd=4))
LISTEN 0      511                 *:8080              *:*     users:(("node",pid=915,fd=20))
"""

ED25519_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAI" + "Q" * 50 + " user@host"


class FakeExecutor(CommandExecutor):
    """Records commands and answers them from responses keyed by command prefix."""

    def __init__(self, available: Iterable[str] = DEFAULT_COMMANDS) -> None:
        self.available = set(available)
        self.commands: List[str] = []
        self.inputs: Dict[str, Optional[str]] = {}
        self.responses: Dict[str, CommandResult] = {}

    def respond(
        self, prefix: str, success: bool = True, stdout: str = "", stderr: str = "",
        return_code: Optional[int] = None,
    ) -> None:
        if return_code is None:
            return_code = 0 if success else 1
        self.responses[prefix] = CommandResult(success, stdout, stderr, return_code)

    def execute(self, cmd, check=True, timeout=30, input_text=None, env=None):
        self.commands.append(cmd)
        self.inputs[cmd] = input_text
        matches = [p for p in self.responses if cmd.startswith(p)]
        if matches:
            result = self.responses[max(matches, key=len)]
        else:
            result = CommandResult(True, "", "", 0)
        if check and not result.success:
            raise CommandExecutionError(
                f"Command failed: {cmd}\nError: {result.stderr}", return_code=result.return_code
            )
        return result

    def check_command_available(self, command):
        return command in self.available

    def ran(self, prefix: str) -> bool:
        return any(cmd.startswith(prefix) for cmd in self.commands)

    def index_of(self, prefix: str) -> int:
        for i, cmd in enumerate(self.commands):
            if cmd.startswith(prefix):
                return i
        raise AssertionError(f"{prefix!r} was never run")


class StaticProbe(ListenerProbe):
    """Probe answering from fixed port sets."""

    def __init__(self, listening=(), sshd=()):
        self.listening = set(listening)
        self.sshd = set(sshd)

    def listening_ports(self):
        return set(self.listening)

    def sshd_ports(self):
        return set(self.sshd)


@pytest.fixture
def executor() -> FakeExecutor:
    fake = FakeExecutor()
    fake.respond("ss -ltnp", stdout=SS_OUTPUT)
    fake.respond("systemctl list-unit-files", stdout="ssh.service  enabled  enabled\n")
    return fake


@pytest.fixture
def file_manager() -> FileManager:
    return FileManager()


@pytest.fixture
def test_config(tmp_path: Path) -> HardenerConfig:
    """Create test configuration rooted in a temporary directory."""
    ssh_dir = tmp_path / "etc" / "ssh"
    ssh_dir.mkdir(parents=True)
    return HardenerConfig(
        ssh=SSHConfig(config_path=ssh_dir / "sshd_config", scan_dir=ssh_dir),
        account=AccountConfig(home_base=tmp_path / "home"),
        fail2ban=Fail2banConfig(jail_path=tmp_path / "etc" / "fail2ban" / "jail.local"),
        logging=LoggingConfig(file=tmp_path / "host-hardener.log"),
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def public_key() -> str:
    return ED25519_KEY


@pytest.fixture
def static_probe():
    return StaticProbe

