"""Structured editing of ``Key value`` configuration files such as sshd_config."""

import re
from enum import Enum
from pathlib import Path
from typing import List, NamedTuple, Optional

import structlog

from host_hardener.utils.file import FileManager

logger = structlog.get_logger(__name__)

_KEYWORD = r"(?P<key>[A-Za-z][A-Za-z0-9]*)"
_VALUE = r"(?:(?:\s*=\s*|\s+)(?P<value>.*?))?\s*$"
DIRECTIVE_RE = re.compile(r"^\s*" + _KEYWORD + _VALUE)
DISABLED_DIRECTIVE_RE = re.compile(r"^\s*#+\s*" + _KEYWORD + _VALUE)


class LineKind(str, Enum):
    """Kinds of line in a directive file."""

    BLANK = "blank"
    COMMENT = "comment"
    DIRECTIVE = "directive"
    OTHER = "other"


class ConfigLine(NamedTuple):
    """One line of a directive file, kept verbatim in ``raw``.

    ``key`` is set for active directives and for comments that hold a
    disabled directive such as ``#Port 22``.
    """

    raw: str
    kind: LineKind
    key: Optional[str] = None
    value: Optional[str] = None

    def matches(self, key: str) -> bool:
        return self.key is not None and self.key.lower() == key.lower()

    @property
    def active(self) -> bool:
        return self.kind == LineKind.DIRECTIVE


def parse_line(raw: str) -> ConfigLine:
    """Classify a single line without its line ending."""
    stripped = raw.strip()
    if not stripped:
        return ConfigLine(raw, LineKind.BLANK)

    if stripped.startswith("#"):
        match = DISABLED_DIRECTIVE_RE.match(raw)
        if match:
            return ConfigLine(raw, LineKind.COMMENT, match.group("key"), match.group("value"))
        return ConfigLine(raw, LineKind.COMMENT)

    match = DIRECTIVE_RE.match(raw)
    if match:
        return ConfigLine(raw, LineKind.DIRECTIVE, match.group("key"), match.group("value"))
    return ConfigLine(raw, LineKind.OTHER)


class DirectiveDocument:
    """An ordered sequence of typed lines that re-serializes losslessly."""

    def __init__(self, lines: List[ConfigLine], trailing_newline: bool = True) -> None:
        self.lines = lines
        self.trailing_newline = trailing_newline

    @classmethod
    def parse(cls, text: str) -> "DirectiveDocument":
        if not text:
            return cls([], trailing_newline=True)
        raw_lines = text.split("\n")
        trailing_newline = raw_lines[-1] == ""
        if trailing_newline:
            raw_lines.pop()
        return cls([parse_line(raw) for raw in raw_lines], trailing_newline)

    def render(self) -> str:
        text = "\n".join(line.raw for line in self.lines)
        if self.lines and self.trailing_newline:
            text += "\n"
        return text

    def indexes_of(self, key: str) -> List[int]:
        """Positions of every line, active or disabled, carrying ``key``."""
        return [i for i, line in enumerate(self.lines) if line.matches(key)]

    def active_values(self, key: str) -> List[Optional[str]]:
        return [line.value for line in self.lines if line.active and line.matches(key)]

    def upsert(self, key: str, value: str) -> None:
        """Make ``key value`` the only line for ``key``.

        The last existing occurrence is rewritten in place and all others are
        dropped. Without any occurrence the line is appended, ahead of the
        first ``Match`` block so it keeps global scope.
        """
        new_line = parse_line(f"{key} {value}")
        positions = self.indexes_of(key)

        if positions:
            last = positions[-1]
            self.lines[last] = new_line
            drop = set(positions[:-1])
            self.lines = [line for i, line in enumerate(self.lines) if i not in drop]
            return

        match_blocks = [
            i for i, line in enumerate(self.lines) if line.active and line.matches("Match")
        ]
        if match_blocks:
            self.lines.insert(match_blocks[0], new_line)
        else:
            self.lines.append(new_line)
        self.trailing_newline = True

    def keep_last(self, key: str) -> int:
        """Delete all but the last line for ``key``; returns how many were removed."""
        positions = self.indexes_of(key)
        drop = set(positions[:-1])
        if drop:
            self.lines = [line for i, line in enumerate(self.lines) if i not in drop]
        return len(drop)


class ConfigMutator:
    """Apply directive edits to files, backing each file up before its first write."""

    def __init__(self, file_manager: FileManager) -> None:
        self.file_manager = file_manager

    def load(self, path: Path) -> DirectiveDocument:
        return DirectiveDocument.parse(self.file_manager.read_file(path))

    def upsert(self, path: Path, key: str, value: str) -> None:
        """Ensure exactly one active ``key value`` line exists in ``path``.

        Args:
            path: Target configuration file; created empty when missing
            key: Directive name, matched case-insensitively
            value: Directive value

        Raises:
            ConfigWriteError: If the file cannot be created or written
        """
        if self.file_manager.ensure_exists(path):
            self.file_manager.ensure_backup(path)

        document = self.load(path)
        before = document.render()
        document.upsert(key, value)
        after = document.render()

        if after != before:
            self.file_manager.write_file(path, after)
            logger.info("Directive set", file=str(path), key=key, value=value)

    def keep_last(self, path: Path, key: str) -> int:
        """Remove earlier duplicates of ``key`` in ``path``, keeping the last line."""
        document = self.load(path)
        removed = document.keep_last(key)
        if removed:
            self.file_manager.ensure_backup(path)
            self.file_manager.write_file(path, document.render())
            logger.info("Duplicate directives removed", file=str(path), key=key, count=removed)
        return removed
