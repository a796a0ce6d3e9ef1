from __future__ import annotations

import pytest

from checkin.config import Settings

from .fakes import API_BASE_URL, CameraRig, FakeTicketingService


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        api_base_url=API_BASE_URL,
        api_token="console-token",
        camera_enable_hardware=False,
        camera_fps=100,
    )


@pytest.fixture
def ticketing() -> FakeTicketingService:
    return FakeTicketingService()


@pytest.fixture
def camera_rig() -> CameraRig:
    return CameraRig()
