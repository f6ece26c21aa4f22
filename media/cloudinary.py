"""
CloudinaryHost — signed uploads and deletes against the Cloudinary REST API.

Requests are signed with SHA-1 over the sorted request parameters plus the
API secret, as Cloudinary's upload API expects.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
import time
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import urlparse

import httpx

from config.settings import Settings
from media.base import MediaHost, MediaHostError, UploadResult

logger = logging.getLogger(__name__)

_API_BASE = "https://api.cloudinary.com/v1_1"
_VERSION_SEGMENT = re.compile(r"^v\d+$")


def sign_params(params: Dict[str, str], api_secret: str) -> str:
    """Cloudinary request signature for ``params`` (excluding file / api_key)."""
    # Cloudinary "generating authentication signatures": drop file, api_key,
    # resource_type, cloud_name and empty values; join the rest as k=v pairs
    # sorted by key with "&"; append the API secret; hex SHA-1.
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params) if params[key] != "")
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()


def public_id_from_url(url: str) -> str:
    """
    Derive the public id from a delivery URL.

    ``https://res.cloudinary.com/demo/image/upload/v17/avatars/abc.png``
    becomes ``avatars/abc``.  Anything that is not a URL is returned as-is.
    """
    parsed = urlparse(url)
    if not parsed.scheme:
        return url
    segments = [s for s in parsed.path.split("/") if s]
    if "upload" in segments:
        segments = segments[segments.index("upload") + 1:]
    if segments and _VERSION_SEGMENT.match(segments[0]):
        segments = segments[1:]
    if not segments:
        return ""
    segments[-1] = segments[-1].rsplit(".", 1)[0]
    return "/".join(segments)


class CloudinaryHost(MediaHost):
    """Media host backed by a Cloudinary account."""

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "CloudinaryHost":
        return cls(
            settings.cloudinary_cloud_name,
            settings.cloudinary_api_key,
            settings.cloudinary_api_secret,
        )

    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def _signed(self, params: Dict[str, str]) -> Dict[str, str]:
        params = {**params, "timestamp": str(int(time.time()))}
        return {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self.api_secret),
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def upload(self, local_path: str) -> UploadResult:
        if not self.is_configured():
            raise MediaHostError("Cloudinary credentials are not configured")
        path = Path(local_path)
        try:
            content = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise MediaHostError(f"Cannot read staged file {local_path}: {exc}") from exc

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{_API_BASE}/{self.cloud_name}/auto/upload",
                    data=self._signed({}),
                    files={"file": (path.name, content)},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.error("Cloudinary upload failed for %s: %s", path.name, exc)
            raise MediaHostError(f"Upload failed: {exc}") from exc

        url = data.get("secure_url") or data.get("url")
        if not url or not data.get("public_id"):
            raise MediaHostError(f"Unexpected upload response: {data}")
        logger.info("Uploaded %s to %s", path.name, url)
        return UploadResult(url=url, public_id=data["public_id"])

    async def delete(self, public_id_or_url: str) -> bool:
        if not self.is_configured():
            raise MediaHostError("Cloudinary credentials are not configured")
        public_id = public_id_from_url(public_id_or_url)
        if not public_id:
            return False

        try:
            async with self._client() as client:
                resp = await client.post(
                    f"{_API_BASE}/{self.cloud_name}/image/destroy",
                    data=self._signed({"public_id": public_id}),
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.error("Cloudinary delete failed for %s: %s", public_id, exc)
            raise MediaHostError(f"Delete failed: {exc}") from exc

        return data.get("result") == "ok"
