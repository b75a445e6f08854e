"""Fail2ban jail setup for the SSH daemon."""

import structlog

from host_hardener.config import Fail2banConfig
from host_hardener.exceptions import ServiceControlError
from host_hardener.packages import PackageInstaller
from host_hardener.utils.command import CommandExecutor
from host_hardener.utils.file import FileManager

logger = structlog.get_logger(__name__)


class BanDaemonConfigurator:
    """Write the sshd jail and (re)start fail2ban."""

    def __init__(
        self,
        executor: CommandExecutor,
        installer: PackageInstaller,
        file_manager: FileManager,
        config: Fail2banConfig,
    ) -> None:
        self.executor = executor
        self.installer = installer
        self.file_manager = file_manager
        self.config = config

    def render_jail(self, ssh_port: int) -> str:
        return f"""[DEFAULT]
bantime = {self.config.bantime}
findtime = {self.config.findtime}
maxretry = {self.config.maxretry}

[sshd]
enabled = true
port = {ssh_port}
logpath = {self.config.logpath}
backend = {self.config.backend}
"""

    def configure(self, ssh_port: int) -> None:
        """Install fail2ban and protect ``ssh_port``.

        Raises:
            ConfigWriteError: If the jail file cannot be written
            ServiceControlError: If fail2ban cannot be restarted or enabled
        """
        logger.info("Configuring fail2ban", jail=str(self.config.jail_path), port=ssh_port)
        self.installer.install("fail2ban")

        self.file_manager.ensure_backup(self.config.jail_path)
        self.file_manager.write_file(self.config.jail_path, self.render_jail(ssh_port))

        for action in ("restart", "enable"):
            result = self.executor.execute(f"systemctl {action} fail2ban", check=False)
            if not result.success:
                raise ServiceControlError(
                    f"fail2ban {action} failed: {result.stderr.strip()}"
                )
        logger.info("Fail2ban configured")
