"""Global fixtures for MindDigit tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from minddigit.api import MindDigitClient
from minddigit.config import SyncConfig
from minddigit.coordinator import SyncOrchestrator
from minddigit.models import (
    ActionResponse,
    GuessResponse,
    HistoryResponse,
    JoinResponse,
    RoomStatusResponse,
)

from .const import (
    BASE_URL,
    MOCK_ACTION_RESPONSE,
    MOCK_GUESS_RESPONSE,
    MOCK_HISTORY_RESPONSE,
    MOCK_JOIN_RESPONSE,
    MOCK_QUICK_STATUS_RESPONSE,
    MOCK_STATUS_RESPONSE,
    PLAYER_NAME,
    TEST_SYNC_OPTIONS,
)


def make_response(
    status: int = 200,
    payload: Any = None,
    *,
    text: str | None = None,
    headers: dict[str, str] | None = None,
) -> MagicMock:
    """Build a mock aiohttp response usable as an async context manager."""
    resp = MagicMock()
    resp.status = status
    resp.headers = headers or {}
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


async def settle(engine: SyncOrchestrator) -> None:
    """Wait for the engine's in-flight full sync (if any) to finish."""
    for _ in range(3):
        future = engine._full_sync
        if future is not None and not future.done():
            await future
        await asyncio.sleep(0)


@pytest.fixture
def mock_session() -> MagicMock:
    """Mock aiohttp ClientSession."""
    session = MagicMock()
    session.closed = False
    session.request = AsyncMock(return_value=make_response(payload={"success": True}))
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_client() -> MagicMock:
    """Mock MindDigit client returning realistic parsed responses."""
    client = MagicMock(spec=MindDigitClient)
    client.base_url = BASE_URL
    client.join_room = AsyncMock(return_value=JoinResponse.model_validate(MOCK_JOIN_RESPONSE))
    client.get_room_status = AsyncMock(return_value=RoomStatusResponse.model_validate(MOCK_STATUS_RESPONSE))
    client.get_quick_status = AsyncMock(return_value=RoomStatusResponse.model_validate(MOCK_QUICK_STATUS_RESPONSE))
    client.get_history = AsyncMock(return_value=HistoryResponse.model_validate(MOCK_HISTORY_RESPONSE))
    client.submit_guess = AsyncMock(return_value=GuessResponse.model_validate(MOCK_GUESS_RESPONSE))
    client.set_secret = AsyncMock(return_value=ActionResponse.model_validate(MOCK_ACTION_RESPONSE))
    client.select_digits = AsyncMock(return_value=ActionResponse.model_validate(MOCK_ACTION_RESPONSE))
    client.skip_turn = AsyncMock(return_value=ActionResponse.model_validate(MOCK_ACTION_RESPONSE))
    client.leave_room = AsyncMock(return_value=None)
    client.check_health = AsyncMock(return_value={"status": "ok"})
    client.close = AsyncMock()
    client.reset_validators = MagicMock()
    return client


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig.from_options(TEST_SYNC_OPTIONS)


@pytest.fixture
async def engine(mock_client, sync_config):
    """Orchestrator wired to the mock client, closed after the test."""
    orchestrator = SyncOrchestrator(mock_client, sync_config)
    yield orchestrator
    await orchestrator.close()


@pytest.fixture
async def joined_engine(engine):
    """Orchestrator that joined a room and finished its first full sync."""
    await engine.join_room(PLAYER_NAME)
    await settle(engine)
    return engine
