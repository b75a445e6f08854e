"""host-hardener - provision an admin account and lock down SSH on a fresh host."""

__version__ = "1.0.0"
__license__ = "MIT"

from host_hardener.exceptions import (
    HardenerError,
    ConfigurationError,
    StageFailed,
    SystemRequirementError,
    ValidationError,
)
from host_hardener.orchestrator import HardeningOrchestrator
from host_hardener.system_info import SystemInfo

__all__ = [
    "HardeningOrchestrator",
    "SystemInfo",
    "HardenerError",
    "ConfigurationError",
    "StageFailed",
    "SystemRequirementError",
    "ValidationError",
]
