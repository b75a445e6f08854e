"""File management utilities."""

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Set

import structlog

from host_hardener.exceptions import ConfigWriteError
from host_hardener.types import BackupRecord

logger = structlog.get_logger(__name__)

BACKUP_MARKER = ".bak."
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def is_backup_artifact(path: Path) -> bool:
    """Return True for files produced by :meth:`FileManager.backup_file`."""
    return BACKUP_MARKER in path.name


class FileManager:
    """Manage file operations with backups taken next to the original."""

    def __init__(self) -> None:
        self.backups: List[BackupRecord] = []
        self._backed_up: Set[Path] = set()

    def backup_file(self, filepath: Path) -> Optional[Path]:
        """Create a timestamped copy ``<path>.bak.<YYYYMMDDHHMMSS>``.

        An existing backup is never overwritten; a numeric suffix is added
        when the timestamped name is already taken.

        Args:
            filepath: Path to file to backup

        Returns:
            Path to backup file or None if source doesn't exist

        Raises:
            ConfigWriteError: If the copy cannot be written
        """
        if not filepath.is_file():
            return None

        timestamp = datetime.now().strftime(TIMESTAMP_FORMAT)
        backup_path = filepath.with_name(f"{filepath.name}{BACKUP_MARKER}{timestamp}")
        counter = 1
        while backup_path.exists():
            backup_path = filepath.with_name(
                f"{filepath.name}{BACKUP_MARKER}{timestamp}.{counter}"
            )
            counter += 1

        try:
            shutil.copy2(filepath, backup_path)
        except OSError as e:
            raise ConfigWriteError(f"Cannot back up {filepath}: {e}") from e

        self.backups.append(
            BackupRecord(
                original_path=str(filepath),
                backup_path=str(backup_path),
                timestamp=timestamp,
            )
        )
        self._backed_up.add(filepath.resolve())
        logger.info("Backup created", file=str(filepath), backup=str(backup_path))
        return backup_path

    def ensure_backup(self, filepath: Path) -> Optional[Path]:
        """Back up ``filepath`` unless it was already backed up in this run.

        Later copies within one run would only capture intermediate states,
        so the first backup is the one that holds the pre-run content.
        """
        if filepath.resolve() in self._backed_up:
            return None
        return self.backup_file(filepath)

    def ensure_exists(self, filepath: Path) -> bool:
        """Create ``filepath`` empty if it is missing.

        A file created here has no pre-run content, so it is treated as
        already backed up for the rest of the run.

        Returns:
            True if the file already existed
        """
        if filepath.exists():
            return True
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            filepath.touch()
        except OSError as e:
            raise ConfigWriteError(f"Cannot create {filepath}: {e}") from e
        self._backed_up.add(filepath.resolve())
        logger.info("Created empty file", file=str(filepath))
        return False

    def read_file(self, filepath: Path) -> str:
        """Read file content."""
        try:
            with open(filepath, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise ConfigWriteError(f"Cannot read {filepath}: {e}") from e

    def write_file(self, filepath: Path, content: str, mode: Optional[int] = None) -> None:
        """Replace file content atomically.

        The new content is written to a temporary file in the same directory
        and renamed over the original, so readers never see a partial file.

        Args:
            filepath: Path to file
            content: Content to write
            mode: Permission bits for a new file; existing files keep theirs

        Raises:
            ConfigWriteError: If the file cannot be written
        """
        tmp_name = None
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{filepath.name}.", suffix=".tmp", dir=str(filepath.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            if filepath.exists():
                shutil.copymode(filepath, tmp_name)
            elif mode is not None:
                os.chmod(tmp_name, mode)
            else:
                os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, filepath)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ConfigWriteError(f"Cannot write {filepath}: {e}") from e
