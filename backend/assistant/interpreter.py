"""
Command Interpreter — Turns one free-text business note into database writes.

Flow for a single command:
  1. Seed the conversation (system prompt + the user's note)
  2. Ask the text-generation backend, offering every registered tool
  3. Run requested tools in order, feed each result back as a tool turn
  4. Stop on a plain-text reply, an empty reply, or the iteration bound
  5. Persist exactly one daily log entry with the final summary

Tool calls inside one turn run sequentially because later calls may rely
on earlier ones (register then sell in the same sentence). Each tool
commits on its own; there is no cross-tool rollback.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from assistant.llm_client import ChatReply
from assistant.prompts import COMMAND_SYSTEM_PROMPT
from assistant.tools import ToolResult, execute_tool_call, tool_definitions
from core.errors import InvalidInput
from db.gateway import StoreGateway

logger = structlog.get_logger()

DEFAULT_MAX_ITERATIONS = 5
FALLBACK_SUMMARY = "I couldn't process that. Try rephrasing."
NO_ACTION_SUMMARY = "Done. No actions taken."


class ChatClient(Protocol):
    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> ChatReply: ...


@dataclass
class CommandResult:
    summary: str
    log_id: uuid.UUID
    tool_results: list[ToolResult] = field(default_factory=list)
    iterations: int = 0


def summarize_tool_results(results: list[ToolResult]) -> str:
    """Best-effort summary when the loop ends without a text reply."""
    if not results:
        return NO_ACTION_SUMMARY
    return "\n".join(result.text for result in results)


class CommandInterpreter:
    """Bounded tool-calling loop over a chat client."""

    def __init__(self, client: ChatClient, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.client = client
        self.max_iterations = max_iterations

    async def interpret(self, db: AsyncSession, actor_id: uuid.UUID, command: str) -> CommandResult:
        content = (command or "").strip()
        if not content:
            raise InvalidInput("Content is required")

        gateway = StoreGateway(db, actor_id)
        log = logger.bind(actor_id=str(actor_id))

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": COMMAND_SYSTEM_PROMPT},
            {"role": "user", "content": content},
        ]
        tools = tool_definitions()
        results: list[ToolResult] = []
        summary: str | None = None
        iteration = 0

        while iteration < self.max_iterations:
            iteration += 1
            reply = await self.client.complete(messages, tools=tools)

            if reply.tool_calls:
                messages.append(reply.as_assistant_turn())
                for call in reply.tool_calls:
                    result = await execute_tool_call(gateway, call)
                    results.append(result)
                    messages.append({"role": "tool", "tool_call_id": call.id, "content": result.text})
                continue

            if reply.text:
                summary = reply.text
            else:
                summary = FALLBACK_SUMMARY
            break

        if summary is None:
            log.info("command.iterations_exhausted", iterations=iteration, tool_runs=len(results))
            summary = summarize_tool_results(results)

        entry = await gateway.insert_log(content, summary)
        log.info(
            "command.interpreted",
            log_id=str(entry.id),
            iterations=iteration,
            tool_runs=len(results),
        )
        return CommandResult(summary=summary, log_id=entry.id, tool_results=results, iterations=iteration)
