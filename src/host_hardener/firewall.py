"""UFW firewall setup."""

import structlog

from host_hardener.config import FirewallConfig
from host_hardener.packages import PackageInstaller
from host_hardener.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)


class FirewallConfigurator:
    """Replace the UFW rule set with deny-by-default plus the SSH port."""

    def __init__(
        self,
        executor: CommandExecutor,
        installer: PackageInstaller,
        config: FirewallConfig,
    ) -> None:
        self.executor = executor
        self.installer = installer
        self.config = config

    def configure(self, ssh_port: int, allow_https: bool) -> None:
        """Reset UFW, allow ``ssh_port`` (and optionally HTTPS) and enable it.

        Raises:
            CommandExecutionError: If a rule cannot be applied
        """
        logger.info("Configuring firewall", ssh_port=ssh_port, allow_https=allow_https)
        self.installer.install("ufw")

        result = self.executor.execute("ufw --force reset", check=False)
        if not result.success:
            logger.warning("Firewall reset failed", error=result.stderr.strip())

        commands = [
            "ufw default deny incoming",
            "ufw default allow outgoing",
            f"ufw allow {ssh_port}/tcp comment 'SSH'",
        ]
        if allow_https:
            commands.append(f"ufw allow {self.config.https_port}/tcp comment 'HTTPS'")
        commands.append("ufw --force enable")

        for cmd in commands:
            self.executor.execute(cmd)

        status = self.executor.execute("ufw status verbose", check=False)
        for line in status.stdout.splitlines():
            if line.strip():
                logger.info("ufw status", line=line.strip())
