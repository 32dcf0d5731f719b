"""Shared test fixtures for lloom.

This module provides pytest fixtures used across all tests.
"""

from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from lloom.models.catalog import ModelDescriptor
from lloom.models.dispatch import TransportResponse
from lloom.models.message import ChatMessage, MessageRole
from lloom.models.space import SpaceDTO
from lloom.services.space_registry import SpaceRegistry
from lloom.utils.ids import MonotonicClock
from mocks.mock_transport import ScriptedTransport

BASE_TIME_MS = 1704067200000  # 2024-01-01 00:00:00 UTC


# Mock fixtures
@pytest.fixture
def mock_transport() -> AsyncMock:
    """Create mock transport interface."""
    transport = AsyncMock()
    transport.complete.return_value = TransportResponse(content="Hello!", model_id="model-a")
    return transport


@pytest.fixture
def scripted_transport() -> ScriptedTransport:
    """Create transport with per-model scripted behaviour."""
    return ScriptedTransport()


@pytest.fixture
def fixed_clock() -> Callable[[], int]:
    """Create clock that starts at BASE_TIME_MS and never advances on its own."""
    return MonotonicClock(source=lambda: BASE_TIME_MS / 1000)


# Sample data fixtures
@pytest.fixture
def sample_models() -> list[ModelDescriptor]:
    """Create sample model catalog."""
    return [
        ModelDescriptor(id="model-a", name="Model A", context_length=8192),
        ModelDescriptor(id="model-b", name="Model B", context_length=32768),
        ModelDescriptor(id="model-c", name="Model C", context_length=128000),
    ]


@pytest.fixture
def registry(sample_models: list[ModelDescriptor]) -> SpaceRegistry:
    """Create registry with a model catalog and no spaces."""
    return SpaceRegistry(sample_models)


@pytest.fixture
def three_spaces(registry: SpaceRegistry) -> list[str]:
    """Create three spaces bound to model-a, model-b and model-c."""
    ids = []
    for model_id in ("model-a", "model-b", "model-c"):
        space = registry.create()
        assert space is not None
        registry.set_model(space.id, model_id)
        ids.append(space.id)
    return ids


@pytest.fixture
def sample_conversation() -> SpaceDTO:
    """Create space snapshot with one user/assistant exchange."""
    return SpaceDTO(
        id="space-1",
        selected_model="model-a",
        messages=(
            ChatMessage(
                id="m1",
                content="What is Python?",
                role=MessageRole.USER,
                timestamp=BASE_TIME_MS,
            ),
            ChatMessage(
                id="m2",
                content="A programming language.",
                role=MessageRole.ASSISTANT,
                timestamp=BASE_TIME_MS + 61_000,
                model="Model A",
            ),
        ),
    )
