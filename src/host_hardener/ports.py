"""Free-port selection for the SSH daemon."""

import random
from typing import Optional, Set

import structlog

from host_hardener.config import PortConfig
from host_hardener.exceptions import SystemRequirementError, ValidationError
from host_hardener.types import ListenerTool
from host_hardener.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)

SSHD_PROCESS_MARKER = "sshd"


def parse_listener_ports(output: str, process_filter: Optional[str] = None) -> Set[int]:
    """Extract local ports from ``ss -ltnp`` or ``netstat -ltnp`` output.

    Both tools print the local address in the fourth column; the port is the
    text after its last colon. Header lines and unparsable rows are skipped.

    Args:
        output: Raw command output
        process_filter: Keep only rows mentioning this process name

    Returns:
        Set of bound ports
    """
    ports: Set[int] = set()
    for line in output.splitlines():
        if process_filter and process_filter not in line:
            continue
        columns = line.split()
        if len(columns) < 4:
            continue
        _, _, port_text = columns[3].rpartition(":")
        if port_text.isdigit():
            ports.add(int(port_text))
    return ports


class ListenerProbe:
    """Reads the active TCP listener table with one concrete tool."""

    def __init__(self, executor: CommandExecutor, tool: ListenerTool) -> None:
        self.executor = executor
        self.tool = tool

    def _table(self) -> str:
        result = self.executor.execute(f"{self.tool.value} -ltnp", check=False)
        if not result.success:
            raise SystemRequirementError(
                f"Cannot inspect listeners with {self.tool.value}: {result.stderr.strip()}"
            )
        return result.stdout

    def listening_ports(self) -> Set[int]:
        return parse_listener_ports(self._table())

    def sshd_ports(self) -> Set[int]:
        return parse_listener_ports(self._table(), process_filter=SSHD_PROCESS_MARKER)


def select_listener_probe(executor: CommandExecutor) -> ListenerProbe:
    """Probe for ``ss`` then ``netstat`` and return a probe for the first found.

    Raises:
        SystemRequirementError: If neither tool is installed
    """
    for tool in ListenerTool:
        if executor.check_command_available(tool.value):
            logger.info("Listener inspection tool selected", tool=tool.value)
            return ListenerProbe(executor, tool)
    tools = ", ".join(t.value for t in ListenerTool)
    raise SystemRequirementError(f"No listener inspection tool found (need one of: {tools})")


class PortAllocator:
    """Propose and validate SSH ports that nothing else is bound to."""

    def __init__(
        self,
        probe: ListenerProbe,
        config: Optional[PortConfig] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.probe = probe
        self.config = config or PortConfig()
        self.rng = rng or random.SystemRandom()

    def suggest_port(self) -> int:
        """Draw random ports until one is free of listeners and of sshd.

        Returns:
            A free port, or the configured fallback when the attempt budget
            runs out. The fallback is not checked and must be validated
            before use.
        """
        occupied = self.probe.listening_ports()
        sshd_bound = self.probe.sshd_ports()

        for attempt in range(1, self.config.max_attempts + 1):
            candidate = self.rng.randint(self.config.min_port, self.config.max_port)
            if candidate in occupied or candidate in sshd_bound:
                continue
            logger.info("Port suggested", port=candidate, attempts=attempt)
            return candidate

        logger.warning(
            "No free port found, using fallback",
            attempts=self.config.max_attempts,
            port=self.config.fallback_port,
        )
        return self.config.fallback_port

    def validate_manual_port(self, text: str) -> int:
        """Validate an operator-supplied port.

        Args:
            text: Raw input

        Returns:
            The port as an integer

        Raises:
            ValidationError: With a distinct message for non-numeric,
                out-of-range, listener-occupied and sshd-occupied values
        """
        text = text.strip()
        if not (text.isascii() and text.isdigit()):
            raise ValidationError("Port must be a number")

        port = int(text)
        if not (self.config.min_port <= port <= self.config.max_port):
            raise ValidationError(
                f"Port {port} is out of range ({self.config.min_port}-{self.config.max_port})"
            )
        if port in self.probe.listening_ports():
            raise ValidationError(f"Port {port} is already in use")
        if port in self.probe.sshd_ports():
            raise ValidationError(f"Port {port} is already used by sshd")
        return port
