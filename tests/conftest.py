"""Shared test fixtures and configuration."""

from __future__ import annotations

import operator
from typing import Annotated, TypedDict

import pytest
from langchain_core.messages import AIMessage
from langgraph.checkpoint.memory import InMemorySaver
from langgraph.graph import END, START, MessagesState, StateGraph
from langgraph.graph.message import add_messages
from langgraph.store.memory import InMemoryStore
from langgraph.types import interrupt

from deep_research_server.config import Settings
from deep_research_server.storage import PathRouter, StateTier, StoreTier


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment and .env file."""
    return Settings(_env_file=None, WEBSEARCHAPI_KEY="test-key", DEFAULT_RECURSION_LIMIT=50)


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def state_tier():
    return StateTier()


@pytest.fixture
def store_tier(memory_store):
    return StoreTier(memory_store)


@pytest.fixture
def router(state_tier, store_tier):
    """Scratch space at the root, durable memories under /memories/."""
    return PathRouter(state_tier, {"/memories/": store_tier})


@pytest.fixture
def echo_graph():
    """One-node graph that answers every run with a fixed AI message."""

    def respond(state: MessagesState):
        return {"messages": [AIMessage(content="hello back")]}

    builder = StateGraph(MessagesState)
    builder.add_node("respond", respond)
    builder.add_edge(START, "respond")
    builder.add_edge("respond", END)
    return builder.compile(checkpointer=InMemorySaver())


class ApprovalState(TypedDict, total=False):
    messages: Annotated[list, add_messages]
    decision: str
    visits: Annotated[int, operator.add]


@pytest.fixture
def approval_graph():
    """Graph that pauses for a human decision before answering."""

    def ask(state: ApprovalState):
        decision = interrupt({"question": "Approve the research plan?"})
        return {"decision": decision, "visits": 1}

    def finish(state: ApprovalState):
        return {"messages": [AIMessage(content=f"decision: {state['decision']}")]}

    builder = StateGraph(ApprovalState)
    builder.add_node("ask", ask)
    builder.add_node("finish", finish)
    builder.add_edge(START, "ask")
    builder.add_edge("ask", "finish")
    builder.add_edge("finish", END)
    return builder.compile(checkpointer=InMemorySaver())


@pytest.fixture
def looping_graph():
    """Graph whose only node routes back to itself forever."""

    def spin(state: MessagesState):
        return {"messages": [AIMessage(content="again")]}

    builder = StateGraph(MessagesState)
    builder.add_node("spin", spin)
    builder.add_edge(START, "spin")
    builder.add_edge("spin", "spin")
    return builder.compile(checkpointer=InMemorySaver())


class DraftState(TypedDict, total=False):
    messages: Annotated[list, add_messages]
    title: str


@pytest.fixture
def draft_graph():
    """Graph with a plain ``title`` field, for durable state merges."""

    def noop(state: DraftState):
        return {}

    builder = StateGraph(DraftState)
    builder.add_node("noop", noop)
    builder.add_edge(START, "noop")
    builder.add_edge("noop", END)
    return builder.compile(checkpointer=InMemorySaver())


@pytest.fixture
def uncheckpointed_graph():
    """The approval graph compiled without a checkpointer; resuming it cannot start."""

    def ask(state: ApprovalState):
        return {"decision": interrupt({"question": "Approve the research plan?"})}

    builder = StateGraph(ApprovalState)
    builder.add_node("ask", ask)
    builder.add_edge(START, "ask")
    builder.add_edge("ask", END)
    return builder.compile()
