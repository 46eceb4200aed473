"""
Model Escrow API: disk storage for uploaded deliverables.

The lifecycle core never touches file bytes; it only records the path this
collaborator hands back.
"""

import asyncio
import logging
import os
import random
import time
from pathlib import Path

logger = logging.getLogger(__name__)


class DiskFileStorage:
    """Writes uploads under ``upload_dir`` with collision-free names."""

    def __init__(self, upload_dir: str):
        self.upload_dir = Path(upload_dir)

    def ensure_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def _unique_name(self, original_name: str) -> str:
        suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"file-{suffix}{Path(original_name).suffix.lower()}"

    async def save(self, data: bytes, original_name: str) -> str:
        """Persist ``data`` and return the stored path."""
        self.ensure_dir()
        path = self.upload_dir / self._unique_name(original_name)
        await asyncio.to_thread(path.write_bytes, data)
        logger.info("Stored %s (%d bytes) at %s", original_name, len(data), path)
        return str(path)

    async def delete(self, path: str) -> None:
        try:
            await asyncio.to_thread(os.remove, path)
        except FileNotFoundError:
            pass

    def exists(self, path: str | None) -> bool:
        return bool(path) and os.path.isfile(path)
