"""Unit tests for the dispatch engine."""

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock

import pytest

from lloom.errors import TransportError
from lloom.models.dispatch import DispatchFailure, DispatchSuccess
from lloom.models.message import MessageRole
from lloom.services.dispatch import (
    DEFAULT_FAILURE_REASON,
    DispatchEngine,
    resolve_system_prompt,
)
from lloom.services.space_registry import SpaceRegistry
from mocks.mock_transport import ScriptedTransport


class TestResolveSystemPrompt:
    """Tests for effective system prompt resolution."""

    def test_space_prompt_wins(self) -> None:
        assert resolve_system_prompt("Be terse", "Be verbose") == "Be terse"

    def test_falls_back_to_global(self) -> None:
        assert resolve_system_prompt("", "Be verbose") == "Be verbose"

    def test_whitespace_space_prompt_falls_back(self) -> None:
        assert resolve_system_prompt("   \n", "Be verbose") == "Be verbose"

    @pytest.mark.parametrize(
        ("space_prompt", "global_prompt"),
        [("", None), ("", ""), (None, None), ("  ", "  ")],
    )
    def test_no_prompt(self, space_prompt: str | None, global_prompt: str | None) -> None:
        assert resolve_system_prompt(space_prompt, global_prompt) is None


class TestBroadcast:
    """Tests for DispatchEngine.broadcast."""

    @pytest.mark.asyncio
    async def test_submission_visible_before_settlement(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        gates = [scripted_transport.hold(m) for m in ("model-a", "model-b", "model-c")]
        engine = DispatchEngine(registry, scripted_transport)

        task = asyncio.create_task(engine.broadcast("Hello"))
        await asyncio.sleep(0)

        for space in registry.spaces():
            assert space.loading is True
            assert space.error is None
            assert len(space.messages) == 1
            assert space.messages[0].role == MessageRole.USER
            assert space.messages[0].content == "Hello"

        for gate in gates:
            gate.set()
        await task

        assert not registry.any_loading

    @pytest.mark.asyncio
    async def test_appends_reply_to_every_space(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        engine = DispatchEngine(registry, scripted_transport)

        outcomes = await engine.broadcast("Hello")

        assert len(outcomes) == 3
        assert all(isinstance(o, DispatchSuccess) for o in outcomes)
        for space_id, model_id in zip(three_spaces, ("model-a", "model-b", "model-c")):
            space = registry.get(space_id)
            assert space is not None
            assert [m.role for m in space.messages] == [MessageRole.USER, MessageRole.ASSISTANT]
            assert space.messages[1].content == f"reply from {model_id}"
            assert space.messages[1].model == model_id
            assert space.loading is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t "])
    async def test_blank_content_is_ignored(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        mock_transport: AsyncMock,
        content: str,
    ) -> None:
        before = registry.spaces()
        engine = DispatchEngine(registry, mock_transport)

        outcomes = await engine.broadcast(content, "Be verbose")

        assert outcomes == []
        assert registry.spaces() == before
        mock_transport.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_content_is_trimmed(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        engine = DispatchEngine(registry, scripted_transport)

        await engine.broadcast("  Hello  \n")

        assert {content for content, _, _ in scripted_transport.calls} == {"Hello"}
        space = registry.get(three_spaces[0])
        assert space is not None
        assert space.messages[0].content == "Hello"

    @pytest.mark.asyncio
    async def test_empty_registry_is_noop(self, mock_transport: AsyncMock) -> None:
        engine = DispatchEngine(SpaceRegistry(), mock_transport)

        assert await engine.broadcast("Hello") == []
        mock_transport.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_system_prompt_per_space(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        registry.set_system_prompt(three_spaces[0], "Be terse")
        engine = DispatchEngine(registry, scripted_transport)

        await engine.broadcast("Hello", global_system_prompt="Be verbose")

        assert scripted_transport.prompts_for("model-a") == ["Be terse"]
        assert scripted_transport.prompts_for("model-b") == ["Be verbose"]
        assert scripted_transport.prompts_for("model-c") == ["Be verbose"]

    @pytest.mark.asyncio
    async def test_no_system_prompt_sent(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        engine = DispatchEngine(registry, scripted_transport)

        await engine.broadcast("Hello")

        assert all(prompt is None for _, _, prompt in scripted_transport.calls)

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
    ) -> None:
        transport = ScriptedTransport(failures={"model-b": TransportError("rate limited")})
        engine = DispatchEngine(registry, transport)

        outcomes = await engine.broadcast("Hello")

        by_space = {o.space_id: o for o in outcomes}
        assert isinstance(by_space[three_spaces[0]], DispatchSuccess)
        assert isinstance(by_space[three_spaces[1]], DispatchFailure)
        assert isinstance(by_space[three_spaces[2]], DispatchSuccess)

        a, b, c = (registry.get(space_id) for space_id in three_spaces)
        assert a is not None and b is not None and c is not None
        assert len(a.messages) == 2 and a.error is None
        assert len(c.messages) == 2 and c.error is None
        assert len(b.messages) == 1
        assert b.error == "rate limited"
        assert not any(space.loading for space in (a, b, c))

    @pytest.mark.asyncio
    async def test_failure_does_not_wait_for_slow_sibling(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
    ) -> None:
        transport = ScriptedTransport(failures={"model-b": TransportError("boom")})
        gate = transport.hold("model-a")
        engine = DispatchEngine(registry, transport)

        task = asyncio.create_task(engine.broadcast("Hello"))
        for _ in range(5):
            await asyncio.sleep(0)

        b = registry.get(three_spaces[1])
        c = registry.get(three_spaces[2])
        a = registry.get(three_spaces[0])
        assert b is not None and b.error == "boom" and b.loading is False
        assert c is not None and len(c.messages) == 2
        assert a is not None and a.loading is True

        gate.set()
        await task
        a = registry.get(three_spaces[0])
        assert a is not None and len(a.messages) == 2

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_failure(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
    ) -> None:
        transport = ScriptedTransport(failures={"model-a": RuntimeError("socket closed")})
        engine = DispatchEngine(registry, transport)

        await engine.broadcast("Hello")

        space = registry.get(three_spaces[0])
        assert space is not None
        assert space.error == "socket closed"

    @pytest.mark.asyncio
    async def test_empty_exception_text_uses_default_reason(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
    ) -> None:
        transport = ScriptedTransport(failures={"model-c": TransportError("")})
        engine = DispatchEngine(registry, transport)

        await engine.broadcast("Hello")

        space = registry.get(three_spaces[2])
        assert space is not None
        assert space.error == DEFAULT_FAILURE_REASON

    @pytest.mark.asyncio
    async def test_malformed_response_becomes_failure(
        self,
        registry: SpaceRegistry,
        mock_transport: AsyncMock,
    ) -> None:
        space = registry.create()
        assert space is not None
        mock_transport.complete.return_value = {"content": "missing model id"}
        engine = DispatchEngine(registry, mock_transport)

        outcomes = await engine.broadcast("Hello")

        assert isinstance(outcomes[0], DispatchFailure)
        snapshot = registry.get(space.id)
        assert snapshot is not None
        assert snapshot.error
        assert len(snapshot.messages) == 1

    @pytest.mark.asyncio
    async def test_error_cleared_by_next_submission(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
    ) -> None:
        transport = ScriptedTransport(failures={"model-b": TransportError("down")})
        engine = DispatchEngine(registry, transport)
        await engine.broadcast("First")

        del transport.failures["model-b"]
        gate = transport.hold("model-b")
        task = asyncio.create_task(engine.broadcast("Second"))
        await asyncio.sleep(0)

        b = registry.get(three_spaces[1])
        assert b is not None
        assert b.error is None
        assert b.loading is True

        gate.set()
        await task
        b = registry.get(three_spaces[1])
        assert b is not None
        assert [m.content for m in b.messages] == ["First", "Second", "reply from model-b"]

    @pytest.mark.asyncio
    async def test_timestamps_follow_insertion_order(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
        fixed_clock: Callable[[], int],
    ) -> None:
        engine = DispatchEngine(registry, scripted_transport, clock=fixed_clock)

        await engine.broadcast("One")
        await engine.broadcast("Two")

        for space in registry.spaces():
            timestamps = [m.timestamp for m in space.messages]
            assert len(timestamps) == 4
            assert timestamps == sorted(timestamps)
            assert len(set(timestamps)) == 4


class TestDispatchToOne:
    """Tests for DispatchEngine.dispatch_to_one."""

    @pytest.mark.asyncio
    async def test_only_target_is_mutated(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        others_before = [registry.get(space_id) for space_id in three_spaces[1:]]
        engine = DispatchEngine(registry, scripted_transport)

        outcome = await engine.dispatch_to_one(three_spaces[0], "hi")

        assert isinstance(outcome, DispatchSuccess)
        assert [registry.get(space_id) for space_id in three_spaces[1:]] == others_before
        target = registry.get(three_spaces[0])
        assert target is not None
        assert len(target.messages) == 2
        assert scripted_transport.calls == [("hi", "model-a", None)]

    @pytest.mark.asyncio
    async def test_unknown_space_is_noop(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        mock_transport: AsyncMock,
    ) -> None:
        before = registry.spaces()
        engine = DispatchEngine(registry, mock_transport)

        assert await engine.dispatch_to_one("missing", "hi") is None
        assert registry.spaces() == before
        mock_transport.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_blank_content_is_noop(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        mock_transport: AsyncMock,
    ) -> None:
        engine = DispatchEngine(registry, mock_transport)

        assert await engine.dispatch_to_one(three_spaces[0], "  ") is None
        mock_transport.complete.assert_not_called()

    @pytest.mark.asyncio
    async def test_uses_global_prompt_fallback(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        engine = DispatchEngine(registry, scripted_transport)

        await engine.dispatch_to_one(three_spaces[1], "hi", "Be verbose")

        assert scripted_transport.prompts_for("model-b") == ["Be verbose"]


class TestInFlightChanges:
    """Tests for edits that happen while requests are in flight."""

    @pytest.mark.asyncio
    async def test_removed_space_is_not_recreated(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        gate = scripted_transport.hold("model-b")
        engine = DispatchEngine(registry, scripted_transport)

        task = asyncio.create_task(engine.broadcast("Hello"))
        await asyncio.sleep(0)
        registry.remove(three_spaces[1])
        gate.set()
        await task

        assert three_spaces[1] not in registry
        assert registry.space_ids() == [three_spaces[0], three_spaces[2]]

    @pytest.mark.asyncio
    async def test_removed_space_failure_is_discarded(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
    ) -> None:
        transport = ScriptedTransport(failures={"model-a": TransportError("boom")})
        gate = transport.hold("model-a")
        engine = DispatchEngine(registry, transport)

        task = asyncio.create_task(engine.dispatch_to_one(three_spaces[0], "Hello"))
        await asyncio.sleep(0)
        registry.remove(three_spaces[0])
        gate.set()
        await task

        assert registry.get(three_spaces[0]) is None

    @pytest.mark.asyncio
    async def test_cleared_space_discards_reply(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        gate = scripted_transport.hold("model-a")
        engine = DispatchEngine(registry, scripted_transport)

        task = asyncio.create_task(engine.dispatch_to_one(three_spaces[0], "Hello"))
        await asyncio.sleep(0)
        registry.clear(three_spaces[0])
        gate.set()
        await task

        space = registry.get(three_spaces[0])
        assert space is not None
        assert space.messages == ()
        assert space.error is None
        assert space.loading is False

    @pytest.mark.asyncio
    async def test_model_change_does_not_affect_in_flight_request(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        gate = scripted_transport.hold("model-a")
        engine = DispatchEngine(registry, scripted_transport)

        task = asyncio.create_task(engine.dispatch_to_one(three_spaces[0], "Hello"))
        await asyncio.sleep(0)
        registry.set_model(three_spaces[0], "model-c")
        registry.set_system_prompt(three_spaces[0], "Changed")
        gate.set()
        await task

        assert scripted_transport.calls == [("Hello", "model-a", None)]
        space = registry.get(three_spaces[0])
        assert space is not None
        assert space.messages[-1].model == "model-a"
        assert space.selected_model == "model-c"

    @pytest.mark.asyncio
    async def test_overlapping_submissions_both_append(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        gate = scripted_transport.hold("model-a")
        engine = DispatchEngine(registry, scripted_transport)

        first = asyncio.create_task(engine.dispatch_to_one(three_spaces[0], "One"))
        await asyncio.sleep(0)
        second = asyncio.create_task(engine.dispatch_to_one(three_spaces[0], "Two"))
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(first, second)

        space = registry.get(three_spaces[0])
        assert space is not None
        assert [m.role for m in space.messages] == [
            MessageRole.USER,
            MessageRole.USER,
            MessageRole.ASSISTANT,
            MessageRole.ASSISTANT,
        ]
        assert space.loading is False

    @pytest.mark.asyncio
    async def test_timed_out_broadcast_settles_loading(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        scripted_transport.hold("model-a")
        engine = DispatchEngine(registry, scripted_transport)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(engine.broadcast("Hello"), timeout=0.05)

        space = registry.get(three_spaces[0])
        assert space is not None
        assert space.loading is False
        assert space.error is None
        assert [m.content for m in space.messages] == ["Hello"]
        assert registry.any_loading is False

    @pytest.mark.asyncio
    async def test_cancelled_dispatch_settles_loading(
        self,
        registry: SpaceRegistry,
        three_spaces: list[str],
        scripted_transport: ScriptedTransport,
    ) -> None:
        scripted_transport.hold("model-b")
        engine = DispatchEngine(registry, scripted_transport)

        task = asyncio.create_task(engine.dispatch_to_one(three_spaces[1], "Hello"))
        await asyncio.sleep(0)
        assert registry.any_loading is True

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        space = registry.get(three_spaces[1])
        assert space is not None
        assert space.loading is False
        assert len(space.messages) == 1
