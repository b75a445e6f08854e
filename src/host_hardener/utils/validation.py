"""Input validation utilities."""

import pwd
import re

from host_hardener.exceptions import ValidationError

USERNAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 16

PUBLIC_KEY_RE = re.compile(
    r"^(?P<algorithm>ssh-rsa|ssh-ed25519|ecdsa-sha2-nistp[0-9]+) "
    r"(?P<payload>[A-Za-z0-9+/=]+) (?P<comment>.+)$"
)

YES_ANSWERS = ("y", "yes")
NO_ANSWERS = ("n", "no")


class Validator:
    """Validate operator input.

    Every ``validate_*`` method returns the normalized value or raises
    :class:`ValidationError` with a message fit to show the operator.
    """

    @staticmethod
    def validate_username(username: str) -> str:
        """Validate the shape of a new account name.

        Args:
            username: Candidate username

        Returns:
            The username, stripped of surrounding whitespace

        Raises:
            ValidationError: If the name is too short, too long or has
                characters outside ``[a-zA-Z0-9_-]``
        """
        username = username.strip()
        if len(username) < USERNAME_MIN_LENGTH:
            raise ValidationError(
                f"Username must be at least {USERNAME_MIN_LENGTH} characters"
            )
        if len(username) > USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username must be at most {USERNAME_MAX_LENGTH} characters"
            )
        if not USERNAME_RE.match(username):
            raise ValidationError(
                "Username may only contain latin letters, digits, '_' and '-'"
            )
        return username

    @staticmethod
    def validate_user_exists(username: str) -> bool:
        """Check if user exists on system.

        Args:
            username: Username to check

        Returns:
            True if user exists, False otherwise
        """
        try:
            pwd.getpwnam(username)
            return True
        except KeyError:
            return False

    @staticmethod
    def validate_password(password: str, confirmation: str, min_length: int = 8) -> str:
        """Check password length and that both entries match."""
        if len(password) < min_length:
            raise ValidationError(f"Password too short (min. {min_length} characters)")
        if password != confirmation:
            raise ValidationError("Passwords do not match")
        return password

    @staticmethod
    def validate_public_key(key: str, min_length: int = 80) -> str:
        """Validate an OpenSSH public key line.

        The key must read ``<algorithm> <base64> <comment>`` with one of the
        ssh-rsa, ssh-ed25519 or ecdsa-sha2-nistp* algorithms. The length check
        catches keys truncated by a bad paste.

        Args:
            key: Public key as pasted by the operator
            min_length: Minimum overall length

        Returns:
            The key, stripped of surrounding whitespace

        Raises:
            ValidationError: If the key is too short or malformed
        """
        key = key.strip()
        if len(key.split()) < 3:
            raise ValidationError(
                "Key must have three parts: algorithm, base64 payload and comment"
            )
        if not PUBLIC_KEY_RE.match(key):
            raise ValidationError(
                "Key must start with ssh-rsa, ssh-ed25519 or ecdsa-sha2-nistp* "
                "followed by a base64 payload and a comment"
            )
        if len(key) < min_length:
            raise ValidationError(
                f"Key looks truncated ({len(key)} characters, expected at least {min_length})"
            )
        return key

    @staticmethod
    def parse_yes_no(answer: str) -> bool:
        """Interpret a y/n answer.

        Raises:
            ValidationError: If the answer is neither yes nor no
        """
        answer = answer.strip().lower()
        if answer in YES_ANSWERS:
            return True
        if answer in NO_ANSWERS:
            return False
        raise ValidationError("Please answer 'y' or 'n'")
