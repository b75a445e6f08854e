"""Custom exceptions for host-hardener."""

from typing import Optional


class HardenerError(Exception):
    """Base exception for all hardener errors."""

    pass


class ConfigurationError(HardenerError):
    """Raised when configuration is invalid."""

    pass


class SystemRequirementError(HardenerError):
    """Raised when system requirements are not met."""

    pass


class ValidationError(HardenerError):
    """Raised when operator input fails validation."""

    pass


class CommandExecutionError(HardenerError):
    """Raised when command execution fails."""

    def __init__(self, message: str, return_code: int = 1) -> None:
        super().__init__(message)
        self.return_code = return_code


class ServiceControlError(HardenerError):
    """Raised when service control operation fails."""

    pass


class SyntaxCheckError(HardenerError):
    """Raised when the SSH daemon rejects its configuration."""

    pass


class ConfigWriteError(HardenerError):
    """Raised when a configuration file cannot be created or written."""

    pass


class AccountError(HardenerError):
    """Raised when the administrative account cannot be provisioned."""

    pass


class InputClosedError(HardenerError):
    """Raised when operator input ends before a question is answered."""

    pass


class OperatorCancelled(HardenerError):
    """Raised when the operator declines to proceed."""

    pass


class StageFailed(HardenerError):
    """Raised by the orchestrator when a pipeline stage aborts the run."""

    def __init__(self, stage: str, reason: str, exit_code: Optional[int] = None) -> None:
        super().__init__(f"Stage '{stage}' failed: {reason}")
        self.stage = stage
        self.reason = reason
        self.exit_code = exit_code if exit_code and exit_code > 0 else 1
