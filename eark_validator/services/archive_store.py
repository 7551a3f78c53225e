"""
Temporary archive storage.

Archives received from the test bed are written to the configured temporary
folder so they can be uploaded to the backend by later calls of the same
session. Each file belongs to exactly one session (or one direct call) and is
deleted once; deletion problems are logged and never raised.
"""
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional

from eark_validator.core.config import settings
from eark_validator.core.constants import ARCHIVE_SUFFIX
from eark_validator.core.error_handling import ArchiveStorageError, InvalidRequestError
from eark_validator.core.utils import decode_archive_from_base64

logger = logging.getLogger(__name__)


class ArchiveStore:
    """Handles the temporary archive files of sessions and direct calls."""

    def __init__(self, root: Optional[str] = None):
        """Initialize the store.

        Args:
            root: Folder for temporary archives (defaults to TMP_FOLDER)
        """
        self._root = Path(root) if root else None

    @property
    def root(self) -> Path:
        # Resolved lazily so configuration changes (e.g. in tests) are honoured
        return self._root or Path(settings.TMP_FOLDER)

    @staticmethod
    def decode(base64_content: Optional[str]) -> bytes:
        """Decode a base64-embedded archive.

        Raises:
            InvalidRequestError: If the content is empty, not base64 or too large
        """
        if not base64_content:
            raise InvalidRequestError("The provided archive is empty")
        try:
            archive_bytes = decode_archive_from_base64(base64_content)
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e
        ArchiveStore._enforce_size_limit(len(archive_bytes))
        return archive_bytes

    def save(self, archive_bytes: bytes) -> Path:
        """Write an archive to a fresh temporary file.

        Returns:
            Absolute path of the new file

        Raises:
            ArchiveStorageError: If the file cannot be written
        """
        target = self.root / f"{uuid.uuid4()}{ARCHIVE_SUFFIX}"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(archive_bytes)
        except OSError as e:
            logger.error(f"Failed to write archive to {target}: {e}")
            raise ArchiveStorageError("Unable to write archive to file system") from e
        logger.info(f"Stored archive at {target} ({len(archive_bytes)} bytes)")
        return target.resolve()

    def read(self, path: Path) -> bytes:
        """Read a stored archive.

        Raises:
            ArchiveStorageError: If the file is missing or unreadable
        """
        try:
            return Path(path).read_bytes()
        except OSError as e:
            logger.error(f"Failed to read archive {path}: {e}")
            raise ArchiveStorageError(f"Unable to read stored archive: {e}") from e

    def delete(self, path: Optional[Path]) -> bool:
        """Delete a stored archive.

        Safe to call with None or an already deleted path.

        Returns:
            True if a file was removed
        """
        if path is None:
            return False
        try:
            target = Path(path)
            existed = target.exists()
            target.unlink(missing_ok=True)
            if existed:
                logger.debug(f"Deleted temporary archive: {path}")
            return existed
        except Exception as e:
            logger.warning(f"Failed to delete temporary archive {path}: {e}")
            return False

    def clean_up(self) -> int:
        """Remove leftovers of previous runs from the temporary folder.

        Returns:
            Number of entries removed
        """
        if not self.root.is_dir():
            return 0

        removed = 0
        for entry in self.root.iterdir():
            try:
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink(missing_ok=True)
                removed += 1
            except Exception as e:
                logger.warning(f"Failed to remove stale temporary entry {entry}: {e}")

        logger.info(f"Cleaned up {removed} stale entries from {self.root}")
        return removed

    @staticmethod
    def _enforce_size_limit(size_bytes: int):
        max_bytes = settings.MAX_ARCHIVE_MB * 1024 * 1024
        if size_bytes > max_bytes:
            raise InvalidRequestError(
                f"Archive exceeds max allowed size of {settings.MAX_ARCHIVE_MB} MB"
            )
