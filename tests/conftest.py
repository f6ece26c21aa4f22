"""
Shared fixtures: in-memory SQLite store, fake media host, ASGI client.
"""

from pathlib import Path
from typing import List

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from auth.service import AccountService
from auth.tokens import TokenIssuer
from config.settings import Settings
from database.session import build_session_factory, init_models
from media.base import MediaHost, MediaHostError, UploadResult

API = "/api/v1/users"


class FakeMediaHost(MediaHost):
    """Records uploads / deletes; can be told to fail uploads."""

    def __init__(self) -> None:
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_uploads = False

    async def upload(self, local_path: str) -> UploadResult:
        if self.fail_uploads:
            raise MediaHostError("media host unavailable")
        assert Path(local_path).exists(), "upload must see the staged file"
        self.uploaded.append(local_path)
        n = len(self.uploaded)
        return UploadResult(
            url=f"https://res.cloudinary.com/demo/image/upload/v1/img{n}.png",
            public_id=f"img{n}",
        )

    async def delete(self, public_id_or_url: str) -> bool:
        self.deleted.append(public_id_or_url)
        return True


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        access_token_secret="test-access-secret",
        refresh_token_secret="test-refresh-secret",
        database_url="sqlite+aiosqlite://",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def issuer(settings) -> TokenIssuer:
    return TokenIssuer(settings)


@pytest.fixture
def media() -> FakeMediaHost:
    return FakeMediaHost()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = build_session_factory(engine)
    async with factory() as session:
        yield session


@pytest.fixture
def service(session, issuer, media) -> AccountService:
    return AccountService(session, issuer, media)


@pytest.fixture
def staged_file(tmp_path):
    """Factory for local files standing in for staged uploads."""

    def _make(name: str = "avatar.png") -> str:
        path = tmp_path / name
        path.write_bytes(b"\x89PNG fake image")
        return str(path)

    return _make


@pytest.fixture
def app(settings, media, engine):
    from main import create_app

    return create_app(settings, media_host=media, engine=engine)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def register(client, username="alice", email="a@x.com", password="secret1",
                   full_name="Alice A", avatar=True, cover=False):
    data = {"username": username, "email": email, "password": password, "fullName": full_name}
    files = {}
    if avatar:
        files["avatar"] = ("avatar.png", b"\x89PNG avatar", "image/png")
    if cover:
        files["coverImage"] = ("cover.png", b"\x89PNG cover", "image/png")
    return await client.post(f"{API}/register", data=data, files=files or None)


async def login(client, password="secret1", **ident):
    ident = ident or {"username": "alice"}
    return await client.post(f"{API}/login", json={**ident, "password": password})
