"""APT package operations."""

import shlex

import structlog

from host_hardener.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}
# Take the maintainer's version of any changed config file
UPGRADE_OPTIONS = "-o Dpkg::Options::=--force-confdef -o Dpkg::Options::=--force-confnew"


class PackageInstaller:
    """Run apt-get non-interactively."""

    def __init__(self, executor: CommandExecutor, timeout: int = 1800) -> None:
        self.executor = executor
        self.timeout = timeout

    def update_and_upgrade(self) -> None:
        """Refresh package lists and upgrade installed packages.

        Raises:
            CommandExecutionError: If apt-get fails
        """
        logger.info("Updating package lists")
        self.executor.execute("apt-get update -y", timeout=self.timeout, env=APT_ENV)
        logger.info("Upgrading installed packages")
        self.executor.execute(
            f"apt-get -y {UPGRADE_OPTIONS} upgrade", timeout=self.timeout, env=APT_ENV
        )

    def install(self, *packages: str) -> None:
        """Install ``packages``; a no-op when none are given."""
        if not packages:
            return
        logger.info("Installing packages", packages=list(packages))
        names = " ".join(shlex.quote(p) for p in packages)
        self.executor.execute(f"apt-get install -y {names}", timeout=self.timeout, env=APT_ENV)
