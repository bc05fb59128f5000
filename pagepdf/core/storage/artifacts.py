"""
Artifact Store
==============

Directory of rendered PDF files. Filenames are chosen by the caller; the store
only creates the directory, resolves paths inside it and purges it.
"""

from typing import Any, List, Optional
from pathlib import Path

import aiofiles.os

from pagepdf.config.logging import get_logger
from pagepdf.config.settings import get_settings

logger = get_logger(__name__)


class StorageError(Exception):
    """Exception raised when the artifact directory cannot be read or written."""

    pass


class ArtifactStore:
    """Flat directory of rendered artifacts."""

    def __init__(self, base_path: Optional[Path] = None):
        self.base_path = Path(base_path or get_settings().artifact_dir).resolve()
        self.logger: Any = logger.bind(component="artifact_store")

    async def ensure_directory(self) -> Path:
        """Create the artifact directory if it does not exist."""
        try:
            await aiofiles.os.makedirs(self.base_path, exist_ok=True)
        except OSError as e:
            self.logger.error("Failed to create artifact directory", path=str(self.base_path))
            raise StorageError(f"Cannot create artifact directory {self.base_path}: {e}") from e
        return self.base_path

    def path_for(self, filename: str) -> Path:
        """Absolute path of an artifact. Only bare filenames are accepted."""
        if not filename or Path(filename).name != filename:
            raise StorageError(f"Invalid artifact filename: {filename!r}")
        return self.base_path / filename

    async def exists(self, filename: str) -> bool:
        """Whether the artifact file is present on disk."""
        return await aiofiles.os.path.isfile(self.path_for(filename))

    async def list_artifacts(self) -> List[str]:
        """Names of the files currently stored."""
        if not await aiofiles.os.path.isdir(self.base_path):
            return []
        names = await aiofiles.os.listdir(self.base_path)
        return sorted([name for name in names if await aiofiles.os.path.isfile(self.base_path / name)])

    async def purge(self) -> int:
        """
        Delete every file directly inside the artifact directory.

        Subdirectories are left alone. A missing directory is not an error.

        Returns:
            Number of files removed
        """
        if not await aiofiles.os.path.isdir(self.base_path):
            return 0

        removed = 0
        try:
            for name in await aiofiles.os.listdir(self.base_path):
                path = self.base_path / name
                if await aiofiles.os.path.isfile(path):
                    await aiofiles.os.remove(path)
                    removed += 1
        except OSError as e:
            self.logger.error("Artifact purge failed", error=str(e), removed=removed)
            raise StorageError(f"Failed to purge artifacts: {e}") from e

        self.logger.info("Artifacts purged", removed=removed)
        return removed
