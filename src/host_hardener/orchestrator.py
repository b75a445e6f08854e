"""Fail-fast hardening pipeline."""

import random
from typing import Callable, List, Optional, Tuple

import structlog

from host_hardener.account import AccountProvisioner
from host_hardener.config import HardenerConfig
from host_hardener.context import HardeningRunState, RunContext
from host_hardener.directives import ConfigMutator
from host_hardener.exceptions import (
    CommandExecutionError,
    ConfigurationError,
    HardenerError,
    OperatorCancelled,
    StageFailed,
    SystemRequirementError,
)
from host_hardener.fail2ban import BanDaemonConfigurator
from host_hardener.firewall import FirewallConfigurator
from host_hardener.packages import PackageInstaller
from host_hardener.ports import PortAllocator, select_listener_probe
from host_hardener.prompts import Prompter
from host_hardener.scanner import ConfigScanner
from host_hardener.sshd import SshHardener
from host_hardener.system_info import SystemInfo
from host_hardener.types import HardeningSummary, Stage
from host_hardener.utils.command import CommandExecutor
from host_hardener.utils.file import FileManager

logger = structlog.get_logger(__name__)

SummaryCallback = Callable[[HardeningSummary], None]


class HardeningOrchestrator:
    """Run every hardening stage in order, stopping at the first failure.

    Stages are not skipped on re-run: each one is safe to repeat, except
    account creation, which refuses an existing username.
    """

    def __init__(
        self,
        config: HardenerConfig,
        prompter: Optional[Prompter] = None,
        executor: Optional[CommandExecutor] = None,
        system: Optional[SystemInfo] = None,
        rng: Optional[random.Random] = None,
        on_summary: Optional[SummaryCallback] = None,
    ) -> None:
        self.config = config
        self.prompter = prompter or Prompter()
        self.executor = executor or CommandExecutor()
        self.system = system or SystemInfo(self.executor)
        self.rng = rng
        self.on_summary = on_summary

        self.file_manager = FileManager()
        self.mutator = ConfigMutator(self.file_manager)
        self.installer = PackageInstaller(self.executor)
        self.accounts = AccountProvisioner(self.executor, self.file_manager, config.account)
        self.ssh = SshHardener(
            self.mutator, self.executor, config.ssh, init_system=self.system.init_system
        )
        self.scanner = ConfigScanner(self.file_manager)
        self.firewall = FirewallConfigurator(self.executor, self.installer, config.firewall)
        self.ban_daemon = BanDaemonConfigurator(
            self.executor, self.installer, self.file_manager, config.fail2ban
        )

        self.context = RunContext()
        self.state = HardeningRunState()

    def stages(self) -> List[Tuple[Stage, Callable[[], None]]]:
        return [
            (Stage.PRIVILEGE_CHECK, self._check_preconditions),
            (Stage.PACKAGES_UPDATED, self._update_packages),
            (Stage.IDENTITY_COLLECTED, self._collect_identity),
            (Stage.ACCOUNT_CREATED, self._create_account),
            (Stage.PORT_CHOSEN, self._choose_port),
            (Stage.SSH_HARDENED, self._harden_ssh),
            (Stage.INSECURE_CONFIGS_SCANNED, self._scan_insecure_configs),
            (Stage.FIREWALL_CONFIGURED, self._configure_firewall),
            (Stage.BAN_DAEMON_CONFIGURED, self._configure_ban_daemon),
        ]

    def run(self) -> HardeningRunState:
        """Execute the pipeline.

        Returns:
            The final run state

        Raises:
            OperatorCancelled: If the operator declines to continue
            StageFailed: If any stage fails; carries the stage name and exit status
        """
        logger.info("Starting host hardening")

        for stage, action in self.stages():
            self.state.enter(stage)
            logger.info("Stage started", stage=stage.value)
            try:
                action()
            except OperatorCancelled as e:
                self.state.abort(str(e))
                logger.info("Run cancelled by operator", stage=stage.value, reason=str(e))
                raise
            except (HardenerError, OSError) as e:
                self._abort(stage, e)
            self.state.complete(stage)
            logger.info("Stage completed", stage=stage.value)

        self.state.finish()
        logger.info("All stages completed", stages=len(self.state.completed))
        self._emit_summary(firewall_enabled=True, ban_daemon_enabled=True)
        return self.state

    def _abort(self, stage: Stage, error: Exception) -> None:
        reason = str(error).strip() or error.__class__.__name__
        exit_code = error.return_code if isinstance(error, CommandExecutionError) else 1
        self.state.abort(reason)
        logger.error("Stage failed, aborting", stage=stage.value, reason=reason)
        raise StageFailed(stage.value, reason, exit_code) from error

    def _emit_summary(self, firewall_enabled: bool, ban_daemon_enabled: bool) -> None:
        summary = HardeningSummary(
            ssh_port=self.context.ssh_port,
            username=self.context.username,
            firewall_enabled=firewall_enabled,
            ban_daemon_enabled=ban_daemon_enabled,
        )
        logger.info("Summary", **summary._asdict())
        if self.on_summary:
            self.on_summary(summary)

    def _check_preconditions(self) -> None:
        issues = self.config.validate_config()
        if issues:
            raise ConfigurationError("; ".join(issues))

        issues = self.system.check_requirements()
        if issues:
            raise SystemRequirementError("; ".join(issues))

        if not self.prompter.confirm_consent():
            raise OperatorCancelled("Operator did not agree to proceed")

    def _update_packages(self) -> None:
        self.installer.update_and_upgrade()

    def _collect_identity(self) -> None:
        identity = self.prompter.collect_identity(self.config.account, self.config.ssh)
        self.context.set_identity(identity)
        logger.info("Identity collected", user=identity.username)

    def _create_account(self) -> None:
        self.accounts.create_admin(self.context.identity)

    def _choose_port(self) -> None:
        allocator = PortAllocator(
            select_listener_probe(self.executor), self.config.ports, rng=self.rng
        )
        port = self.prompter.ask_port(allocator.suggest_port(), allocator)
        self.context.freeze_port(port)
        logger.info("SSH port chosen", port=port)

    def _harden_ssh(self) -> None:
        self.ssh.harden(self.context.ssh_port)

    def _scan_insecure_configs(self) -> None:
        changed = self.scanner.find_and_fix_insecure(self.config.ssh.scan_dir)
        logger.info("Insecure configuration scan finished", fixed=[str(p) for p in changed])
        logger.info("Base SSH setup finished")
        self._emit_summary(firewall_enabled=False, ban_daemon_enabled=False)

    def _configure_firewall(self) -> None:
        self.context.set_allow_https(
            self.prompter.ask_yes_no(f"Open port {self.config.firewall.https_port} (HTTPS)?")
        )
        self.firewall.configure(self.context.ssh_port, self.context.allow_https)

    def _configure_ban_daemon(self) -> None:
        self.ban_daemon.configure(self.context.ssh_port)
