"""
Scoped staging of multipart uploads to the local disk.

Files are written under ``settings.upload_dir`` and always removed when
the ``staged_uploads`` block exits, whether the request succeeded or not.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Optional

from fastapi import UploadFile

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def _unique_name(field: str) -> str:
    return f"{field}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}"


async def stage_upload(upload: UploadFile, directory: str, field: str) -> str:
    """Copy ``upload`` into ``directory`` and return the local path."""
    target_dir = Path(directory)
    await asyncio.to_thread(target_dir.mkdir, parents=True, exist_ok=True)
    target = target_dir / _unique_name(field)
    fh = await asyncio.to_thread(target.open, "wb")
    try:
        while chunk := await upload.read(_CHUNK_SIZE):
            await asyncio.to_thread(fh.write, chunk)
    finally:
        await asyncio.to_thread(fh.close)
    return str(target)


def discard_staged_file(path: Optional[str]) -> None:
    """Best-effort removal; failures are logged, never raised."""
    if not path:
        return
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove staged file %s: %s", path, exc)


@asynccontextmanager
async def staged_uploads(
    directory: str,
    **uploads: Optional[UploadFile],
) -> AsyncIterator[Dict[str, Optional[str]]]:
    """
    Stage every provided upload and yield ``{field: path-or-None}``.

    Missing or empty-filename uploads map to ``None``.
    """
    paths: Dict[str, Optional[str]] = {}
    try:
        for field, upload in uploads.items():
            if upload is None or not upload.filename:
                paths[field] = None
                continue
            paths[field] = await stage_upload(upload, directory, field)
        yield paths
    finally:
        for path in paths.values():
            discard_staged_file(path)
