"""Tests for port inspection and allocation."""

import random

import pytest

from host_hardener.config import PortConfig
from host_hardener.exceptions import SystemRequirementError, ValidationError
from host_hardener.ports import (
    ListenerProbe,
    PortAllocator,
    parse_listener_ports,
    select_listener_probe,
)
from host_hardener.types import ListenerTool

NETSTAT_OUTPUT = """\
Active Internet connections (only servers)
Proto Recv-Q Send-Q Local Address           Foreign Address         State       PID/Program name
tcp        0      0 0.0.0.0:2200            0.0.0.0:*               LISTEN      812/sshd: /usr/sbin
tcp        0      0 127.0.0.1:5432          0.0.0.0:*               LISTEN      700/postgres
tcp6       0      0 :::3306                 :::*                    LISTEN      900/mysqld
"""


def test_parse_ss_output(executor):
    output = executor.execute("ss -ltnp").stdout

    assert parse_listener_ports(output) == {22, 53, 8080}
    assert parse_listener_ports(output, process_filter="sshd") == {22}


def test_parse_netstat_output():
    assert parse_listener_ports(NETSTAT_OUTPUT) == {2200, 5432, 3306}
    assert parse_listener_ports(NETSTAT_OUTPUT, process_filter="sshd") == {2200}


def test_select_prefers_ss(executor):
    assert select_listener_probe(executor).tool == ListenerTool.SS


def test_select_falls_back_to_netstat(executor):
    executor.available = {"netstat"}
    executor.respond("netstat -ltnp", stdout=NETSTAT_OUTPUT)

    probe = select_listener_probe(executor)

    assert probe.tool == ListenerTool.NETSTAT
    assert probe.sshd_ports() == {2200}


def test_select_without_tools_fails(executor):
    executor.available = set()

    with pytest.raises(SystemRequirementError, match="ss, netstat"):
        select_listener_probe(executor)


def test_probe_failure_is_fatal(executor):
    executor.respond("ss -ltnp", success=False, stderr="permission denied")

    with pytest.raises(SystemRequirementError):
        ListenerProbe(executor, ListenerTool.SS).listening_ports()


def test_suggest_port_stays_in_range(rng, static_probe):
    allocator = PortAllocator(static_probe(), rng=rng)

    for _ in range(500):
        assert 1024 <= allocator.suggest_port() <= 65535


def test_suggest_port_avoids_occupied_ports(static_probe):
    config = PortConfig(min_port=2000, max_port=2019)
    occupied = set(range(2000, 2010))
    sshd = {2010, 2011}
    allocator = PortAllocator(
        static_probe(listening=occupied, sshd=sshd), config, rng=random.Random(7)
    )

    for _ in range(50):
        port = allocator.suggest_port()
        assert 2012 <= port <= 2019


def test_suggest_port_falls_back_when_budget_exhausted(static_probe):
    config = PortConfig(min_port=2000, max_port=2003)
    allocator = PortAllocator(
        static_probe(listening={2000, 2001, 2002}, sshd={2003}), config, rng=random.Random(7)
    )

    assert allocator.suggest_port() == 22222


def test_suggest_port_is_reproducible_with_seed(static_probe):
    probe = static_probe(listening={22, 80})
    first = PortAllocator(probe, rng=random.Random(42))
    second = PortAllocator(probe, rng=random.Random(42))

    assert [first.suggest_port() for _ in range(5)] == [second.suggest_port() for _ in range(5)]


@pytest.mark.parametrize(
    "text, message",
    [
        ("abc", "must be a number"),
        ("", "must be a number"),
        ("-5", "must be a number"),
        ("2\u00b2", "must be a number"),
        ("\u0664\u0664\u0664\u0664", "must be a number"),
        ("0", "out of range"),
        ("80", "out of range"),
        ("70000", "out of range"),
        ("8080", "already in use"),
        ("2200", "used by sshd"),
    ],
)
def test_validate_manual_port_rejects(text, message, static_probe):
    allocator = PortAllocator(static_probe(listening={8080}, sshd={2200}))

    with pytest.raises(ValidationError, match=message):
        allocator.validate_manual_port(text)


def test_validate_manual_port_accepts_free_port(static_probe):
    allocator = PortAllocator(static_probe(listening={8080}, sshd={2200}))

    assert allocator.validate_manual_port(" 40022 ") == 40022
