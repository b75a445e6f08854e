"""Creation of the administrative account."""

import os
import shlex
from pathlib import Path
from typing import Optional

import structlog

from host_hardener.config import AccountConfig
from host_hardener.context import PendingIdentity
from host_hardener.exceptions import AccountError
from host_hardener.utils.command import CommandExecutor
from host_hardener.utils.file import FileManager
from host_hardener.utils.validation import Validator

logger = structlog.get_logger(__name__)


class AccountProvisioner:
    """Create a sudo-capable user whose only SSH credential is one public key."""

    def __init__(
        self,
        executor: CommandExecutor,
        file_manager: FileManager,
        config: AccountConfig,
        validator: Optional[Validator] = None,
    ) -> None:
        self.executor = executor
        self.file_manager = file_manager
        self.config = config
        self.validator = validator or Validator()

    def ssh_dir(self, username: str) -> Path:
        return self.config.home_base / username / ".ssh"

    def _group_exists(self, group: str) -> bool:
        result = self.executor.execute(f"getent group {shlex.quote(group)}", check=False)
        return result.success

    def create_admin(self, identity: PendingIdentity) -> Path:
        """Create the account, set its password and install its key.

        Args:
            identity: Validated identity from the operator

        Returns:
            Path of the written ``authorized_keys`` file

        Raises:
            AccountError: If the user already exists or the admin group is missing
            CommandExecutionError: If any account command fails
            ConfigWriteError: If the key file cannot be written
        """
        username = identity.username
        user = shlex.quote(username)

        if self.validator.validate_user_exists(username):
            raise AccountError(f"User '{username}' already exists")
        if not self._group_exists(self.config.admin_group):
            raise AccountError(f"Admin group '{self.config.admin_group}' does not exist")

        logger.info("Creating user", user=username, group=self.config.admin_group)
        home = shlex.quote(str(self.config.home_base / username))
        self.executor.execute(f"useradd -m -d {home} -s {shlex.quote(self.config.shell)} {user}")
        self.executor.execute("chpasswd", input_text=f"{username}:{identity.password}\n")
        self.executor.execute(f"usermod -aG {shlex.quote(self.config.admin_group)} {user}")

        ssh_dir = self.ssh_dir(username)
        auth_keys = ssh_dir / "authorized_keys"
        try:
            ssh_dir.mkdir(parents=True, exist_ok=True)
            os.chmod(ssh_dir, 0o700)
        except OSError as e:
            raise AccountError(f"Cannot create {ssh_dir}: {e}") from e

        self.file_manager.write_file(auth_keys, identity.public_key + "\n", mode=0o600)
        try:
            os.chmod(auth_keys, 0o600)
        except OSError as e:
            raise AccountError(f"Cannot set permissions on {auth_keys}: {e}") from e

        self.executor.execute(f"chown -R {user}:{user} {shlex.quote(str(ssh_dir))}")
        logger.info("SSH key installed", user=username, file=str(auth_keys))
        return auth_keys
