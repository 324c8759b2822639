"""Test configuration and fixtures."""

from pathlib import Path

import pytest

from mobide.config import Settings
from mobide.managers import SessionManager, WorkspaceManager
from mobide.services import AuthSignalDetector, SessionRegistry
from tests.fakes import FakeClock, FakeDriver


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Get test settings with a temporary workspaces root."""
    return Settings(
        workspace={"root_path": str(tmp_path / "workspaces")},
        idle={"timeout_seconds": 60, "reap_interval_seconds": 3600},
    )


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def workspaces(test_settings: Settings) -> WorkspaceManager:
    return WorkspaceManager(test_settings.workspace.root_path)


@pytest.fixture
def session_manager(
    fake_driver: FakeDriver,
    workspaces: WorkspaceManager,
    test_settings: Settings,
) -> SessionManager:
    return SessionManager(
        fake_driver,
        workspaces,
        test_settings.terminal,
        test_settings.workspace,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def registry(
    session_manager: SessionManager,
    workspaces: WorkspaceManager,
    clock: FakeClock,
):
    registry = SessionRegistry(
        session_manager,
        workspaces,
        AuthSignalDetector(),
        clock=clock,
    )
    yield registry
    await registry.shutdown()
