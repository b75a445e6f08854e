"""Interactive operator prompts with re-prompting on invalid input."""

import getpass
from typing import Callable, Optional, TypeVar

import structlog

from host_hardener.config import AccountConfig, SSHConfig
from host_hardener.context import PendingIdentity
from host_hardener.exceptions import InputClosedError, ValidationError
from host_hardener.ports import PortAllocator
from host_hardener.utils.validation import Validator

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CONSENT_WORD = "agree"


class Prompter:
    """Ask the operator for input until it validates."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        secret_func: Callable[[str], str] = getpass.getpass,
        validator: Optional[Validator] = None,
    ) -> None:
        self.input_func = input_func
        self.secret_func = secret_func
        self.validator = validator or Validator()

    def _read(self, message: str, secret: bool = False) -> str:
        reader = self.secret_func if secret else self.input_func
        try:
            return reader(message)
        except EOFError:
            raise InputClosedError(f"Input closed at prompt: {message.strip()}") from None

    def _ask(self, read: Callable[[], T]) -> T:
        """Call ``read`` until it stops raising :class:`ValidationError`."""
        while True:
            try:
                return read()
            except ValidationError as e:
                logger.warning("Invalid input", reason=str(e))

    def confirm_consent(self) -> bool:
        answer = self._read(
            "This will change SSH access and the firewall of this host. "
            f"Proceed? ({CONSENT_WORD}/exit): "
        )
        return answer.strip().lower() == CONSENT_WORD

    def ask_username(self) -> str:
        def read() -> str:
            username = self.validator.validate_username(
                self._read("New admin username (3-16 chars, letters/digits/_/-): ")
            )
            if self.validator.validate_user_exists(username):
                raise ValidationError(f"User '{username}' already exists")
            return username

        return self._ask(read)

    def ask_password(self, username: str, min_length: int) -> str:
        def read() -> str:
            first = self._read(f"Password for {username}: ", secret=True)
            second = self._read("Repeat password: ", secret=True)
            return self.validator.validate_password(first, second, min_length)

        return self._ask(read)

    def ask_public_key(self, min_length: int) -> str:
        return self._ask(
            lambda: self.validator.validate_public_key(
                self._read("Paste the SSH public key on one line: "), min_length
            )
        )

    def ask_yes_no(self, question: str) -> bool:
        return self._ask(lambda: self.validator.parse_yes_no(self._read(f"{question} [y/n]: ")))

    def ask_port(self, suggested: int, allocator: PortAllocator) -> int:
        """Offer ``suggested`` and fall back to asking for a port by hand.

        The suggestion is re-checked on acceptance because the fallback value
        is not guaranteed to be free.
        """
        answer = self._read(f"Suggested SSH port: {suggested}. Use it? [Y/n]: ")
        if answer.strip().lower() in ("", "y", "yes"):
            try:
                return allocator.validate_manual_port(str(suggested))
            except ValidationError as e:
                logger.warning("Suggested port rejected", port=suggested, reason=str(e))

        return self._ask(
            lambda: allocator.validate_manual_port(
                self._read(
                    f"Enter a port ({allocator.config.min_port}-{allocator.config.max_port}): "
                )
            )
        )

    def collect_identity(self, account: AccountConfig, ssh: SSHConfig) -> PendingIdentity:
        username = self.ask_username()
        password = self.ask_password(username, account.password_min_length)
        public_key = self.ask_public_key(ssh.key_min_length)
        return PendingIdentity(username=username, password=password, public_key=public_key)
