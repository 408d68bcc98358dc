from __future__ import annotations

import inspect
import json
import logging
from typing import Annotated, Any, Literal

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import SystemMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import StructuredTool
from langchain_google_genai import ChatGoogleGenerativeAI
from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.config import get_store
from langgraph.graph import END, START, MessagesState, StateGraph
from langgraph.store.base import BaseStore
from langgraph.store.memory import InMemoryStore

from .config import Settings, get_settings
from .prompts import get_system_prompt
from .storage import FileData, PathRouter, StateTier, StorageTier, StoreTier, merge_files
from .tools import get_registered_tools, get_tools_by_name
from .tools.todo_tools import Todo

logger = logging.getLogger(__name__)


class ResearchState(MessagesState):
    # Ephemeral files; checkpointed with the thread
    files: Annotated[dict[str, FileData], merge_files]
    # Research plan; each write_todos call replaces it
    todos: list[Todo]


def build_model(settings: Settings) -> ChatGoogleGenerativeAI:
    """Instantiate the Gemini chat model used by the research loop."""
    return ChatGoogleGenerativeAI(
        model=settings.gemini_model,
        api_key=settings.google_api_key,
        temperature=settings.model_temperature,
        timeout=60,
        max_retries=2,
    )


def create_durable_tier(settings: Settings, store: BaseStore) -> StorageTier:
    """Build the cross-thread tier mounted under the memories prefix."""

    if settings.durable_backend == "gcs":
        if not settings.google_cloud_storage_bucket:
            raise ValueError("GOOGLE_CLOUD_STORAGE_BUCKET must be set when DURABLE_BACKEND=gcs")
        from .storage.gcs_tier import GCSTier

        return GCSTier(settings.google_cloud_storage_bucket, prefix=settings.gcs_memories_prefix)
    return StoreTier(store)


def build_router(files: dict[str, FileData] | None, durable: StorageTier, settings: Settings) -> PathRouter:
    return PathRouter(StateTier(files), {settings.memories_prefix: durable})


def create_graph(
    settings: Settings | None = None,
    *,
    checkpointer: BaseCheckpointSaver | None = None,
    store: BaseStore | None = None,
    model: BaseChatModel | None = None,
):
    resolved_settings = settings or get_settings()
    tools = get_registered_tools()
    tools_by_name = get_tools_by_name()
    system_message = SystemMessage(
        content=get_system_prompt(
            override=resolved_settings.system_prompt,
            memories_prefix=resolved_settings.memories_prefix,
        )
    )
    store = store if store is not None else InMemoryStore()
    gcs_tier = create_durable_tier(resolved_settings, store) if resolved_settings.durable_backend == "gcs" else None
    model_with_tools = (model or build_model(resolved_settings)).bind_tools(tools)

    async def call_model(state: ResearchState, config: RunnableConfig):
        messages = [system_message] + list(state["messages"])
        response = await model_with_tools.ainvoke(messages, config=config)
        return {"messages": [response]}

    def call_tools(state: ResearchState, config: RunnableConfig):
        last_message = state["messages"][-1]
        thread_id = (config.get("configurable") or {}).get("thread_id")
        durable = gcs_tier or StoreTier(get_store())
        router = build_router(state.get("files"), durable, resolved_settings)
        tool_outputs: list[ToolMessage] = []
        state_updates: dict[str, Any] = {}

        for tool_call in last_message.tool_calls:
            tool_name = tool_call["name"]
            tool = tools_by_name.get(tool_name)
            logger.info("[AGENT] Executing tool: %s", tool_name)

            if not tool:
                observation = f"Requested tool '{tool_name}' is not available."
                logger.warning("[AGENT] Tool not found: %s", tool_name)
            else:
                try:
                    args = dict(tool_call.get("args") or {})
                    args["_agent_context"] = {"thread_id": thread_id, "backend": router, "updates": state_updates}
                    # Call the function directly: invoke() strips keys outside the
                    # schema, which would drop _agent_context
                    if isinstance(tool, StructuredTool) and tool.func is not None:
                        allowed = set(inspect.signature(tool.func).parameters)
                        result = tool.func(**{k: v for k, v in args.items() if k in allowed})
                    else:
                        args.pop("_agent_context")
                        result = tool.invoke(args, config=config)
                    observation = result if isinstance(result, str) else json.dumps(result, ensure_ascii=False)
                    logger.info("[AGENT] Tool result: %s", observation[:500])
                except Exception as exc:
                    logger.exception("[AGENT] Tool execution failed: %s", tool_name)
                    observation = f"Tool '{tool_name}' failed: {exc}"
            tool_outputs.append(ToolMessage(content=observation, name=tool_name, tool_call_id=tool_call["id"]))

        update: dict[str, Any] = {**state_updates, "messages": tool_outputs}
        if isinstance(router.default, StateTier) and router.default.updates:
            update["files"] = router.default.updates
        return update

    def should_continue(state: ResearchState) -> Literal["tools", END]:
        last_message = state["messages"][-1]
        if getattr(last_message, "tool_calls", None):
            return "tools"
        return END

    workflow = StateGraph(ResearchState)
    workflow.add_node("model", call_model)
    workflow.add_node("tools", call_tools)
    workflow.add_edge(START, "model")
    workflow.add_conditional_edges("model", should_continue, ["tools", END])
    workflow.add_edge("tools", "model")

    return workflow.compile(checkpointer=checkpointer, store=store)
