"""Tests for the interactive prompter."""

import pytest

from host_hardener.config import AccountConfig, SSHConfig
from host_hardener.exceptions import InputClosedError
from host_hardener.ports import PortAllocator
from host_hardener.prompts import Prompter
from host_hardener.utils.validation import Validator


def scripted(*answers):
    """Input function returning ``answers`` in order, then EOF."""
    remaining = list(answers)
    asked = []

    def read(message):
        asked.append(message)
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    read.asked = asked
    return read


@pytest.fixture(autouse=True)
def no_existing_users(monkeypatch):
    monkeypatch.setattr(
        Validator, "validate_user_exists", staticmethod(lambda name: name == "admin")
    )


def test_consent():
    assert Prompter(input_func=scripted("agree")).confirm_consent()
    assert Prompter(input_func=scripted("AGREE ")).confirm_consent()
    assert not Prompter(input_func=scripted("exit")).confirm_consent()


def test_username_reprompts_until_valid():
    reader = scripted("ab", "bad name", "admin", "deploy-01")

    assert Prompter(input_func=reader).ask_username() == "deploy-01"
    assert len(reader.asked) == 4


def test_password_reprompts_on_mismatch_and_length():
    secrets = scripted("short", "short", "password1", "password2", "password1", "password1")

    prompter = Prompter(secret_func=secrets)

    assert prompter.ask_password("deploy", 8) == "password1"


def test_collect_identity(public_key):
    prompter = Prompter(
        input_func=scripted("deploy-01", "ssh-rsa AAAA", public_key),
        secret_func=scripted("password1", "password1"),
    )

    identity = prompter.collect_identity(AccountConfig(), SSHConfig())

    assert identity.username == "deploy-01"
    assert identity.password == "password1"
    assert identity.public_key == public_key
    assert "password1" not in repr(identity)


def test_yes_no_reprompts():
    assert Prompter(input_func=scripted("maybe", "y")).ask_yes_no("Open 443?") is True


def test_port_suggestion_accepted_by_default(static_probe):
    allocator = PortAllocator(static_probe(listening={22}))

    assert Prompter(input_func=scripted("")).ask_port(40000, allocator) == 40000


def test_port_override_reprompts(static_probe):
    allocator = PortAllocator(static_probe(listening={8080}, sshd={22}))
    reader = scripted("n", "http", "80", "8080", "41000")

    assert Prompter(input_func=reader).ask_port(40000, allocator) == 41000


def test_occupied_suggestion_falls_through_to_manual_entry(static_probe):
    allocator = PortAllocator(static_probe(listening={22222}))
    reader = scripted("y", "41000")

    assert Prompter(input_func=reader).ask_port(22222, allocator) == 41000


def test_closed_input_is_an_error():
    with pytest.raises(InputClosedError, match="username"):
        Prompter(input_func=scripted()).ask_username()


def test_closed_input_while_reading_password():
    prompter = Prompter(secret_func=scripted("password1"))

    with pytest.raises(InputClosedError, match="Repeat password"):
        prompter.ask_password("deploy", 8)


def test_port_override_reprompts_on_non_ascii_digits(static_probe):
    allocator = PortAllocator(static_probe())
    reader = scripted("n", "2²", "41000")

    assert Prompter(input_func=reader).ask_port(40000, allocator) == 41000
    assert len(reader.asked) == 3
