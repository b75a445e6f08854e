"""Detection and repair of SSH fragments that re-enable password login."""

import os
import re
from pathlib import Path
from typing import List, Optional

import structlog

from host_hardener.utils.file import FileManager, is_backup_artifact

logger = structlog.get_logger(__name__)

INSECURE_RE = re.compile(r"^(?P<prefix>[ \t]*PasswordAuthentication[ \t]+)yes\b", re.MULTILINE)


class ConfigScanner:
    """Find files under a directory that still allow password authentication."""

    def __init__(self, file_manager: FileManager) -> None:
        self.file_manager = file_manager

    def iter_candidates(self, root_dir: Path) -> List[Path]:
        """List regular files under ``root_dir``, skipping backups and symlinks."""
        candidates: List[Path] = []
        for dirpath, dirnames, filenames in os.walk(root_dir):
            dirnames[:] = sorted(d for d in dirnames if not is_backup_artifact(Path(d)))
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if is_backup_artifact(path) or path.is_symlink() or not path.is_file():
                    continue
                candidates.append(path)
        return candidates

    @staticmethod
    def _read_text(path: Path) -> Optional[str]:
        data = path.read_bytes()
        if b"\0" in data:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def find_and_fix_insecure(self, root_dir: Path) -> List[Path]:
        """Rewrite ``PasswordAuthentication yes`` to ``no`` in every file under ``root_dir``.

        Only the ``yes`` token of matching lines changes; the rest of each file
        is written back byte for byte.

        Args:
            root_dir: Directory searched recursively

        Returns:
            Files that were changed, possibly empty

        Raises:
            ConfigWriteError: If a matching file cannot be backed up or written
        """
        changed: List[Path] = []
        if not root_dir.is_dir():
            logger.warning("Scan directory missing", directory=str(root_dir))
            return changed

        for path in self.iter_candidates(root_dir):
            try:
                text = self._read_text(path)
            except OSError as e:
                logger.warning("Cannot read file during scan", file=str(path), error=str(e))
                continue
            if text is None or not INSECURE_RE.search(text):
                continue

            logger.warning("Fixing insecure password authentication", file=str(path))
            self.file_manager.ensure_backup(path)
            self.file_manager.write_file(path, INSECURE_RE.sub(r"\g<prefix>no", text))
            changed.append(path)

        if not changed:
            logger.info("No insecure SSH configurations found", directory=str(root_dir))
        return changed
