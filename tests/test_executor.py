"""Tests for the executor adapter against scripted and real LangGraph executors."""

from __future__ import annotations

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from deep_research_server.errors import ExecutorStartError, RunExceeded
from deep_research_server.executor import ExecutorAdapter, StreamEvent, supports_state_writes, tag_event
from deep_research_server.run_request import (
    NewInput,
    ResumeCommand,
    StatelessContinue,
    parse_run_options,
)
from tests.helpers import FailingStartExecutor, ScriptedExecutor, collect


def _options(settings, **body):
    return parse_run_options(body, "thread-1", settings)


class TestTagEvent:
    def test_mode_chunk_pair_keeps_channel(self):
        assert tag_event(("values", {"a": 1})) == StreamEvent("values", {"a": 1})

    def test_bare_payload_is_tagged_data(self):
        assert tag_event({"a": 1}) == StreamEvent("data", {"a": 1})

    def test_tuple_with_non_string_head_is_untagged(self):
        assert tag_event((1, 2)).channel == "data"


class TestExecutorAdapterScripted:
    """Adapter behaviour with an executor double."""

    @pytest.mark.asyncio
    async def test_events_in_production_order(self, settings):
        executor = ScriptedExecutor([("values", {"n": 1}), ("updates", {"node": {}}), {"raw": True}])
        events = await collect(await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), _options(settings)))

        assert [event.channel for event in events] == ["values", "updates", "data"]
        assert events[0].payload == {"n": 1}
        assert executor.closed is True

    @pytest.mark.asyncio
    async def test_passes_config_and_modes(self, settings):
        executor = ScriptedExecutor()
        options = _options(settings, stream_mode="values", interrupt_before=["tools"])
        await collect(await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), options))

        call = executor.calls[0]
        assert call["input"] is None
        assert call["stream_mode"] == ["values"]
        assert call["interrupt_before"] == ["tools"]
        assert call["config"]["configurable"]["thread_id"] == "thread-1"
        assert call["config"]["recursion_limit"] == 50

    @pytest.mark.asyncio
    async def test_failure_before_first_event_is_start_error(self, settings):
        """A lazy stream that fails on its first item is rejected at start."""
        executor = FailingStartExecutor()

        with pytest.raises(ExecutorStartError, match="no model"):
            await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), _options(settings))
        assert executor.closed is True

    @pytest.mark.asyncio
    async def test_empty_stream_starts_and_ends(self, settings):
        executor = ScriptedExecutor()

        events = await collect(await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), _options(settings)))

        assert events == []
        assert executor.closed is True

    @pytest.mark.asyncio
    async def test_primed_event_is_not_duplicated(self, settings):
        executor = ScriptedExecutor([("values", {"n": 1}), ("values", {"n": 2})])

        events = await collect(await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), _options(settings)))

        assert [event.payload for event in events] == [{"n": 1}, {"n": 2}]
        assert executor.produced == 2

    @pytest.mark.asyncio
    async def test_mid_stream_error_propagates_after_prior_events(self, settings):
        executor = ScriptedExecutor([("values", {"n": 1})], error=RuntimeError("model quota exhausted"))
        events = await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), _options(settings))

        first = await events.__anext__()
        assert first.channel == "values"
        with pytest.raises(RuntimeError, match="quota"):
            await events.__anext__()
        assert executor.closed is True

    @pytest.mark.asyncio
    async def test_early_close_stops_the_source(self, settings):
        """A consumer that stops reading must not leave the execution running."""
        executor = ScriptedExecutor([("values", {"n": i}) for i in range(10)])
        events = await ExecutorAdapter(executor).start("thread-1", StatelessContinue(), _options(settings))

        await events.__anext__()
        await events.aclose()

        assert executor.closed is True
        assert executor.produced == 1

    def test_supports_state_writes(self, draft_graph):
        assert supports_state_writes(draft_graph) is True
        assert supports_state_writes(ScriptedExecutor()) is False


class TestExecutorAdapterGraph:
    """Adapter behaviour against compiled LangGraph graphs."""

    @pytest.mark.asyncio
    async def test_values_only_run(self, settings, echo_graph):
        request = NewInput(messages=[HumanMessage(content="hi")])
        options = _options(settings, stream_mode=["values"])
        events = await collect(await ExecutorAdapter(echo_graph).start("thread-1", request, options))

        assert events
        assert all(event.channel == "values" for event in events)
        final = events[-1].payload["messages"]
        assert [message.content for message in final] == ["hi", "hello back"]

    @pytest.mark.asyncio
    async def test_recursion_limit_becomes_run_exceeded(self, settings, looping_graph):
        request = NewInput(messages=[HumanMessage(content="go")])
        options = _options(settings, stream_mode=["updates"], config={"recursion_limit": 3})

        with pytest.raises(RunExceeded) as excinfo:
            await collect(await ExecutorAdapter(looping_graph).start("loop", request, options))

        assert excinfo.value.limit == 3
        assert "3" in str(excinfo.value)

    @pytest.mark.asyncio
    async def test_resume_without_checkpointer_fails_at_start(self, settings, uncheckpointed_graph):
        options = _options(settings, stream_mode=["values"])

        with pytest.raises(ExecutorStartError):
            await ExecutorAdapter(uncheckpointed_graph).start("thread-1", ResumeCommand(resume="approved"), options)

    @pytest.mark.asyncio
    async def test_resume_continues_interrupted_thread(self, settings, approval_graph):
        """Resuming continues from the interrupt without adding a human message."""
        adapter = ExecutorAdapter(approval_graph)
        first = await collect(
            await adapter.start(
                "approval",
                NewInput(messages=[HumanMessage(content="research solar")]),
                parse_run_options({"stream_mode": ["updates"]}, "approval", settings),
            )
        )
        assert any("__interrupt__" in event.payload for event in first)

        config = {"configurable": {"thread_id": "approval"}}
        paused = await approval_graph.aget_state(config)
        assert paused.next == ("ask",)

        await collect(
            await adapter.start(
                "approval",
                ResumeCommand(resume="approved"),
                parse_run_options({"stream_mode": ["values"]}, "approval", settings),
            )
        )

        state = await approval_graph.aget_state(config)
        messages = state.values["messages"]
        assert state.values["decision"] == "approved"
        assert state.values["visits"] == 1
        assert [type(message) for message in messages] == [HumanMessage, AIMessage]
        assert messages[-1].content == "decision: approved"
        assert state.next == ()
