"""CLI entry point for host-hardener."""

import argparse
import sys
from pathlib import Path
from typing import NoReturn

import structlog
from pydantic import ValidationError as SettingsError

from host_hardener import __version__
from host_hardener.audit import configure_logging
from host_hardener.config import HardenerConfig
from host_hardener.exceptions import HardenerError, OperatorCancelled, StageFailed
from host_hardener.orchestrator import HardeningOrchestrator
from host_hardener.types import HardeningSummary

logger = structlog.get_logger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="host-hardener - admin account, SSH, firewall and fail2ban setup",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive run
  sudo host-hardener

  # Keep the audit log somewhere else
  sudo host-hardener --log-file /root/hardening.log

Environment variables:
  SSH_CONFIG_PATH       - sshd_config to harden
  ACCOUNT_ADMIN_GROUP   - Group granting sudo (default: sudo)
  FAIL2BAN_MAXRETRY     - Failures before a ban
  LOG_FILE              - Audit log path
        """,
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument(
        "--sshd-config",
        type=Path,
        help="Path to sshd_config (overrides config/env)",
    )

    parser.add_argument(
        "--log-file",
        type=Path,
        help="Audit log path (overrides config/env)",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log executed commands",
    )

    return parser.parse_args()


def load_config(args: argparse.Namespace) -> HardenerConfig:
    """Load configuration from the environment and apply CLI overrides."""
    config = HardenerConfig.from_env()

    if args.sshd_config:
        config.ssh.config_path = args.sshd_config

    if args.log_file:
        config.logging.file = args.log_file

    if args.verbose:
        config.logging.level = "DEBUG"

    return config


def print_summary(summary: HardeningSummary) -> None:
    """Print the operator-facing summary."""
    print("\nSummary:")
    print(f"  SSH port: {summary.ssh_port}")
    print("  Key login: enabled")
    print("  Password login: disabled")
    print(f"  User: {summary.username}")
    print(f"  Firewall: {'enabled' if summary.firewall_enabled else 'pending'}")
    print(f"  Fail2ban: {'enabled' if summary.ban_daemon_enabled else 'pending'}\n")


def main() -> NoReturn:
    """Main entry point for CLI.

    Raises:
        SystemExit: Always exits with appropriate code
    """
    args = parse_args()

    if not sys.platform.startswith("linux"):
        print("Error: This tool only supports Linux systems", file=sys.stderr)
        sys.exit(1)

    try:
        config = load_config(args)
        configure_logging(config.logging.file, config.logging.level)
    except (HardenerError, SettingsError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    orchestrator = HardeningOrchestrator(config, on_summary=print_summary)

    try:
        orchestrator.run()
        print("Done. Re-run with: sudo host-hardener")
        sys.exit(0)

    except OperatorCancelled:
        sys.exit(0)

    except StageFailed as e:
        print(f"\nError: {e}", file=sys.stderr)
        print("Backups of modified files are next to the originals (*.bak.*).", file=sys.stderr)
        sys.exit(e.exit_code)

    except KeyboardInterrupt:
        logger.error("Interrupted by user", stage=orchestrator.state.current.value)
        sys.exit(130)


if __name__ == "__main__":
    main()
