"""Configuration management for host-hardener."""

import os
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SSHConfig(BaseSettings):
    """SSH daemon locations and key acceptance rules."""

    config_path: Path = Field(default=Path("/etc/ssh/sshd_config"))
    scan_dir: Path = Field(
        default=Path("/etc/ssh"), description="Tree searched for password-auth overrides"
    )
    sshd_binaries: List[str] = Field(default_factory=lambda: ["sshd", "/usr/sbin/sshd"])
    unit_names: List[str] = Field(default_factory=lambda: ["ssh", "sshd"])
    key_min_length: int = Field(default=80, ge=16)

    model_config = SettingsConfigDict(
        env_prefix="SSH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("sshd_binaries", "unit_names", mode="before")
    @classmethod
    def parse_names(cls, v: object) -> List[str]:
        """Parse names from comma-separated string or list."""
        if isinstance(v, str):
            return [u.strip() for u in v.split(",") if u.strip()]
        if isinstance(v, list):
            return [str(u).strip() for u in v if str(u).strip()]
        return []


class PortConfig(BaseSettings):
    """Port suggestion bounds."""

    min_port: int = Field(default=1024, ge=1, le=65535)
    max_port: int = Field(default=65535, ge=1, le=65535)
    max_attempts: int = Field(default=200, ge=1)
    fallback_port: int = Field(default=22222, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="PORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class AccountConfig(BaseSettings):
    """Administrative account settings."""

    shell: str = Field(default="/bin/bash")
    admin_group: str = Field(default="sudo")
    home_base: Path = Field(default=Path("/home"))
    password_min_length: int = Field(default=8, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class FirewallConfig(BaseSettings):
    """Firewall settings."""

    https_port: int = Field(default=443, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_prefix="FIREWALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class Fail2banConfig(BaseSettings):
    """Fail2ban jail settings."""

    jail_path: Path = Field(default=Path("/etc/fail2ban/jail.local"))
    bantime: int = Field(default=3600, ge=60)
    findtime: int = Field(default=600, ge=60)
    maxretry: int = Field(default=5, ge=1)
    logpath: str = Field(default="/var/log/auth.log")
    backend: str = Field(default="systemd")

    model_config = SettingsConfigDict(
        env_prefix="FAIL2BAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class LoggingConfig(BaseSettings):
    """Audit log configuration."""

    level: str = Field(default="INFO")
    file: Path = Field(default=Path("/var/log/host-hardener.log"))

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: object) -> None:
        """Initialize logging configuration."""
        super().__init__(**data)
        # /var/log is not writable without root
        if os.geteuid() != 0 and "file" not in data and "LOG_FILE" not in os.environ:
            self.file = Path.home() / "host-hardener.log"


class HardenerConfig(BaseSettings):
    """Main configuration container."""

    ssh: SSHConfig = Field(default_factory=SSHConfig)
    ports: PortConfig = Field(default_factory=PortConfig)
    account: AccountConfig = Field(default_factory=AccountConfig)
    firewall: FirewallConfig = Field(default_factory=FirewallConfig)
    fail2ban: Fail2banConfig = Field(default_factory=Fail2banConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_env(cls) -> "HardenerConfig":
        """Create configuration from environment variables."""
        return cls(
            ssh=SSHConfig(),
            ports=PortConfig(),
            account=AccountConfig(),
            firewall=FirewallConfig(),
            fail2ban=Fail2banConfig(),
            logging=LoggingConfig(),
        )

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of issues."""
        issues: List[str] = []

        if self.ports.min_port < 1024:
            issues.append(f"Port range must start at 1024 or above, got {self.ports.min_port}")

        if self.ports.min_port > self.ports.max_port:
            issues.append(
                f"Empty port range {self.ports.min_port}-{self.ports.max_port}"
            )

        if not self.ssh.sshd_binaries:
            issues.append("No sshd binary configured for syntax validation")

        if not self.ssh.unit_names:
            issues.append("No SSH service names configured")

        return issues
