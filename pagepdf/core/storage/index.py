"""
Cache Index
===========

Persisted mapping from canonical target URL to artifact filename.

The whole mapping lives in one JSON document. It is read fresh on every
lookup and rewritten in full on every update; writes go to a sibling temporary
file that is swapped in with ``aiofiles.os.replace`` so readers never see a
partial document.
"""

from typing import Any, Dict, Optional
from pathlib import Path
import asyncio
import json
import os

import aiofiles
import aiofiles.os

from pagepdf.config.logging import get_logger
from pagepdf.config.settings import get_settings

logger = get_logger(__name__)


class IndexCorruptionError(Exception):
    """Raised when the index document exists but is not a flat string mapping."""

    pass


class CacheIndex:
    """JSON-backed key to filename mapping."""

    def __init__(self, index_path: Optional[Path] = None):
        self.index_path = Path(index_path or get_settings().index_file).resolve()
        self.logger: Any = logger.bind(component="cache_index")
        # Serializes read-modify-write updates and clears within this process.
        self._write_lock = asyncio.Lock()

    async def read(self) -> Dict[str, str]:
        """
        Load the mapping.

        Returns:
            The stored mapping, or an empty dict if the document does not exist

        Raises:
            IndexCorruptionError: If the document cannot be parsed
        """
        if not await aiofiles.os.path.exists(self.index_path):
            return {}

        try:
            async with aiofiles.open(self.index_path, "r", encoding="utf-8") as f:
                data = json.loads(await f.read())
        except FileNotFoundError:
            # Cleared between the existence check and the open
            return {}
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            self.logger.error("Cache index is corrupt", path=str(self.index_path), error=str(e))
            raise IndexCorruptionError(f"Cache index {self.index_path} is corrupt: {e}") from e

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            self.logger.error("Cache index has unexpected shape", path=str(self.index_path))
            raise IndexCorruptionError(
                f"Cache index {self.index_path} is not a mapping of strings"
            )

        return data

    async def write(self, mapping: Dict[str, str]) -> None:
        """Replace the stored mapping with ``mapping``."""
        tmp_path = self.index_path.with_name(f"{self.index_path.name}.{os.getpid()}.tmp")
        await aiofiles.os.makedirs(self.index_path.parent, exist_ok=True)

        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(json.dumps(mapping, indent=2))
            await aiofiles.os.replace(tmp_path, self.index_path)
        finally:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)

        self.logger.debug("Cache index written", entries=len(mapping))

    async def clear(self) -> None:
        """Remove the document. Subsequent reads return an empty mapping."""
        async with self._write_lock:
            if await aiofiles.os.path.exists(self.index_path):
                await aiofiles.os.remove(self.index_path)
        self.logger.info("Cache index cleared")

    async def lookup(self, key: str) -> Optional[str]:
        """Artifact filename recorded for ``key``, if any."""
        return (await self.read()).get(key)

    async def record(self, key: str, filename: str) -> None:
        """Add one entry by re-reading, updating and rewriting the whole mapping."""
        async with self._write_lock:
            mapping = await self.read()
            mapping[key] = filename
            await self.write(mapping)

        self.logger.info("Cache entry recorded", key=key, filename=filename)
