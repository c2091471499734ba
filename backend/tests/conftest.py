"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from core.filesystem import LocalFileSystem
from schemas.revision import RevisionRecord
from services.diff_service import DiffService
from services.path_mapper import PathMapper
from services.revision_engine import RevisionEngine

RevisionFactory = Callable[[str, str, int], RevisionRecord]


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty workspace directory for the test."""
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def fs(workspace: Path) -> LocalFileSystem:
    """Filesystem rooted at the test workspace."""
    return LocalFileSystem(workspace)


@pytest.fixture
def mapper() -> PathMapper:
    """Path mapper with the default folder name and suffix."""
    return PathMapper(".revisions", "revlog")


@pytest.fixture
def diff() -> DiffService:
    """Diff service instance."""
    return DiffService()


@pytest.fixture
def make_revision(diff: DiffService) -> RevisionFactory:
    """Factory building a client-style revision from old content to new content."""

    def _make(old: str, new: str, ts: int) -> RevisionRecord:
        return RevisionRecord(
            ts=ts,
            silentsave=False,
            restoring=False,
            patch=[diff.make_patch(old, new)],
            length=len(new),
        )

    return _make


@pytest.fixture
async def engine(fs: LocalFileSystem, mapper: PathMapper) -> AsyncGenerator[RevisionEngine, None]:
    """Running revision engine for the test workspace."""
    revision_engine = RevisionEngine(fs, mapper)
    await revision_engine.start()
    yield revision_engine
    await revision_engine.close()


@pytest.fixture
def settings_env(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Point settings at the test workspace.

    This must be set before importing api.main, which reads settings at import time.
    """
    from core.config import get_settings

    monkeypatch.setenv("WORKSPACE_DIR", str(workspace))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def client(
    settings_env: None,  # noqa: ARG001
    engine: RevisionEngine,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client using the test engine (lifespan is not run)."""
    from api.connections import ConnectionManager
    from api.dispatcher import CommandDispatcher
    from api.main import app

    connections = ConnectionManager()
    app.state.engine = engine
    app.state.connections = connections
    app.state.dispatcher = CommandDispatcher(engine, connections)

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client
