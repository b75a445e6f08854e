"""SSH daemon hardening."""

import shlex
from pathlib import Path
from typing import List, Optional, Tuple

import structlog

from host_hardener.config import SSHConfig
from host_hardener.directives import ConfigMutator
from host_hardener.exceptions import (
    ServiceControlError,
    SyntaxCheckError,
    SystemRequirementError,
)
from host_hardener.types import InitSystem
from host_hardener.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)


def required_directives(port: int) -> List[Tuple[str, str]]:
    """Directives every hardened sshd_config must carry."""
    return [
        ("Port", str(port)),
        ("PermitRootLogin", "no"),
        ("PasswordAuthentication", "no"),
        ("ChallengeResponseAuthentication", "no"),
        ("UsePAM", "yes"),
    ]


class SshHardener:
    """Apply the hardened directive set, validate it and restart sshd."""

    def __init__(
        self,
        mutator: ConfigMutator,
        executor: CommandExecutor,
        config: SSHConfig,
        init_system: InitSystem = InitSystem.SYSTEMD,
    ) -> None:
        self.mutator = mutator
        self.executor = executor
        self.config = config
        self.init_system = init_system

    @property
    def config_path(self) -> Path:
        return self.config.config_path

    def harden(self, port: int) -> None:
        """Rewrite sshd_config for ``port`` and restart the daemon.

        A syntax failure stops before the restart. The backup taken by the
        mutator is left for the operator; nothing is reverted automatically.

        Raises:
            ConfigWriteError: If the config file cannot be written
            SyntaxCheckError: If ``sshd -t`` rejects the result
            ServiceControlError: If the service cannot be restarted
        """
        logger.info("Applying SSH hardening", file=str(self.config_path), port=port)
        self.apply_directives(port)
        self.validate_syntax()
        self.restart_service()

    def apply_directives(self, port: int) -> None:
        for key, value in required_directives(port):
            self.mutator.upsert(self.config_path, key, value)
        # A stale Port line left by a manual edit would make the effective port ambiguous
        self.mutator.keep_last(self.config_path, "Port")

    def _find_sshd(self) -> Optional[str]:
        for binary in self.config.sshd_binaries:
            if self.executor.check_command_available(binary):
                return binary
        return None

    def validate_syntax(self) -> None:
        """Run ``sshd -t`` against the configuration file.

        Raises:
            SystemRequirementError: If no sshd binary is installed
            SyntaxCheckError: If the configuration is rejected
        """
        sshd = self._find_sshd()
        if sshd is None:
            raise SystemRequirementError(
                f"Cannot validate SSH config: none of {', '.join(self.config.sshd_binaries)} found"
            )

        result = self.executor.execute(
            f"{sshd} -t -f {shlex.quote(str(self.config_path))}", check=False
        )
        if not result.success:
            raise SyntaxCheckError(
                f"Invalid SSH config {self.config_path}: {result.stderr.strip()}"
            )
        logger.info("SSH configuration validated", file=str(self.config_path))

    def _find_systemd_unit(self) -> Optional[str]:
        if self.init_system != InitSystem.SYSTEMD:
            return None
        result = self.executor.execute("systemctl list-unit-files", check=False)
        if not result.success:
            return None
        known = {line.split()[0] for line in result.stdout.splitlines() if line.strip()}
        for name in self.config.unit_names:
            if f"{name}.service" in known:
                return name
        return None

    def restart_service(self) -> str:
        """Restart sshd through systemd, or through ``service`` as a fallback.

        Returns:
            Name of the service that was restarted

        Raises:
            ServiceControlError: If the restart fails, or if every fallback
                name fails
        """
        unit = self._find_systemd_unit()
        if unit:
            logger.info("Restarting SSH service", service=unit)
            result = self.executor.execute(f"systemctl restart {unit}", check=False)
            if not result.success:
                raise ServiceControlError(
                    f"systemctl restart {unit} failed: {result.stderr.strip()}"
                )
            return unit

        logger.warning(
            "No SSH unit known to systemd, falling back to service command",
            names=self.config.unit_names,
        )
        errors: List[str] = []
        for name in self.config.unit_names:
            result = self.executor.execute(f"service {name} restart", check=False)
            if result.success:
                logger.info("Restarted SSH service", service=name)
                return name
            errors.append(f"{name}: {result.stderr.strip() or result.return_code}")
        raise ServiceControlError(f"Could not restart SSH service ({'; '.join(errors)})")
