from __future__ import annotations

import logging
import os

from .errors import StorageError

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class LocalFileStorage:
    """
    Writes uploaded files into a local directory.

    Returned paths are relative and use forward slashes, e.g.
    'uploads/user_1_1700000000000.png', so they can be stored as-is on a user.
    """

    def __init__(self, base_dir: str, public_prefix: str = "uploads") -> None:
        self._base_dir = base_dir
        self._public_prefix = public_prefix.strip("/")

    def store(self, data: bytes, suggested_name: str) -> str:
        """
        Persist bytes under a name derived from suggested_name.

        Raises:
            StorageError: if the directory or file cannot be written.
        """
        # Never let a caller-provided name escape the base directory.
        name = os.path.basename(suggested_name.replace("\\", "/"))
        if not name or name in {".", ".."}:
            raise StorageError("Invalid file name")

        try:
            os.makedirs(self._base_dir, exist_ok=True)
            with open(os.path.join(self._base_dir, name), "wb") as f:
                f.write(data)
        except OSError as exc:
            logger.error("Failed to write %s into %s: %s", name, self._base_dir, exc)
            raise StorageError("Failed to store file") from exc

        logger.info("Stored %d bytes as %s", len(data), name)
        return f"{self._public_prefix}/{name}"
