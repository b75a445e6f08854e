"""Tests for administrative account provisioning."""

import stat

import pytest

from host_hardener.account import AccountProvisioner
from host_hardener.context import PendingIdentity
from host_hardener.exceptions import AccountError, CommandExecutionError
from host_hardener.utils.validation import Validator


@pytest.fixture
def identity(public_key) -> PendingIdentity:
    return PendingIdentity(username="deploy-01", password="correct horse", public_key=public_key)


@pytest.fixture
def provisioner(executor, file_manager, test_config, monkeypatch) -> AccountProvisioner:
    monkeypatch.setattr(Validator, "validate_user_exists", staticmethod(lambda name: False))
    return AccountProvisioner(executor, file_manager, test_config.account)


def test_create_admin(provisioner, executor, identity, test_config):
    auth_keys = provisioner.create_admin(identity)

    home = test_config.account.home_base / "deploy-01"
    assert auth_keys == home / ".ssh" / "authorized_keys"
    assert auth_keys.read_text() == identity.public_key + "\n"
    assert stat.S_IMODE(auth_keys.stat().st_mode) == 0o600
    assert stat.S_IMODE(auth_keys.parent.stat().st_mode) == 0o700

    assert executor.commands == [
        "getent group sudo",
        f"useradd -m -d {home} -s /bin/bash deploy-01",
        "chpasswd",
        "usermod -aG sudo deploy-01",
        f"chown -R deploy-01:deploy-01 {home / '.ssh'}",
    ]
    assert executor.inputs["chpasswd"] == "deploy-01:correct horse\n"


def test_password_never_on_command_line(provisioner, executor, identity):
    provisioner.create_admin(identity)

    assert not any("correct horse" in cmd for cmd in executor.commands)


def test_existing_user_is_refused(provisioner, executor, identity, monkeypatch):
    monkeypatch.setattr(Validator, "validate_user_exists", staticmethod(lambda name: True))

    with pytest.raises(AccountError, match="already exists"):
        provisioner.create_admin(identity)
    assert executor.commands == []


def test_missing_group_is_fatal(provisioner, executor, identity):
    executor.respond("getent group", success=False, return_code=2)

    with pytest.raises(AccountError, match="group 'sudo'"):
        provisioner.create_admin(identity)
    assert not executor.ran("useradd")


def test_useradd_failure_stops_provisioning(provisioner, executor, identity):
    executor.respond("useradd", success=False, stderr="useradd: cannot lock /etc/passwd", return_code=1)

    with pytest.raises(CommandExecutionError):
        provisioner.create_admin(identity)
    assert not executor.ran("chpasswd")
