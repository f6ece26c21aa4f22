"""
MediaHost — abstract interface for the external image host.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


class MediaHostError(Exception):
    """Raised when the media host rejects or fails a request."""


@dataclass(frozen=True)
class UploadResult:
    url: str
    public_id: str


class MediaHost(ABC):
    """Abstract base for image hosts."""

    @abstractmethod
    async def upload(self, local_path: str) -> UploadResult:
        """
        Upload the file at ``local_path``.

        Raises ``MediaHostError`` on any failure.  Does not remove the
        local file; staging owns that.
        """
        ...

    @abstractmethod
    async def delete(self, public_id_or_url: str) -> bool:
        """Delete a hosted asset.  Returns ``True`` if the host removed it."""
        ...
