"""Command execution utilities."""

import os
import subprocess
from typing import Dict, Optional

import structlog

from host_hardener.exceptions import CommandExecutionError
from host_hardener.types import CommandResult

logger = structlog.get_logger(__name__)


class CommandExecutor:
    """Execute system commands with proper error handling."""

    def execute(
        self,
        cmd: str,
        check: bool = True,
        timeout: Optional[int] = 30,
        input_text: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> CommandResult:
        """Execute a shell command.

        Args:
            cmd: Command to execute
            check: Whether to raise exception on failure
            timeout: Command timeout in seconds, None to wait indefinitely
            input_text: Text fed to the command's stdin; never logged
            env: Extra environment variables for the command

        Returns:
            CommandResult with execution details

        Raises:
            CommandExecutionError: If command fails and check=True
        """
        logger.debug("run_command", cmd=cmd)

        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)

        try:
            result = subprocess.run(
                cmd,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=input_text,
                env=run_env,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            error_msg = f"Command timed out after {timeout}s: {cmd}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)
        except OSError as e:
            error_msg = f"Command execution failed: {cmd}\nError: {e}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)

        cmd_result = CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout,
            stderr=result.stderr,
            return_code=result.returncode,
        )

        if check and not cmd_result.success:
            raise CommandExecutionError(
                f"Command failed: {cmd}\nError: {result.stderr.strip()}",
                return_code=result.returncode,
            )

        return cmd_result

    def check_command_available(self, command: str) -> bool:
        """Check if command is available on system."""
        result = self.execute(f"command -v {command}", check=False)
        return result.success
