"""Tests for configuration module."""

from host_hardener.config import Fail2banConfig, HardenerConfig, PortConfig, SSHConfig


def test_port_config_defaults():
    """Test port config default values."""
    config = PortConfig()
    assert config.min_port == 1024
    assert config.max_port == 65535
    assert config.max_attempts == 200
    assert config.fallback_port == 22222


def test_fail2ban_defaults():
    config = Fail2banConfig()
    assert config.bantime == 3600
    assert config.findtime == 600
    assert config.maxretry == 5


def test_config_validation(test_config):
    """Test configuration validation."""
    assert test_config.validate_config() == []

    test_config.ports.min_port = 80
    test_config.ssh.unit_names = []

    issues = test_config.validate_config()
    assert "Port range must start at 1024 or above, got 80" in issues
    assert "No SSH service names configured" in issues


def test_parse_unit_names():
    """Test service names parsing from string."""
    config = SSHConfig(unit_names="ssh, sshd ,")
    assert config.unit_names == ["ssh", "sshd"]


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SSH_CONFIG_PATH", str(tmp_path / "sshd_config"))
    monkeypatch.setenv("FAIL2BAN_MAXRETRY", "3")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "audit.log"))

    config = HardenerConfig.from_env()

    assert config.ssh.config_path == tmp_path / "sshd_config"
    assert config.fail2ban.maxretry == 3
    assert config.logging.file == tmp_path / "audit.log"
