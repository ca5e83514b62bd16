"""
Command console package.

Free-text business notes are routed to a fixed set of tools by a
text-generation backend:
  - manage_inventory / log_expense / log_cs_inquiry  (writes)
  - check_inventory / check_cs_status                 (reads)

Usage:
    from assistant import ChatCompletionClient, CommandInterpreter

    interpreter = CommandInterpreter(ChatCompletionClient.from_settings())
    result = await interpreter.interpret(db, actor_id, "Sold 2 Blue Mugs to Kim")
"""

from assistant.interpreter import CommandInterpreter, CommandResult
from assistant.llm_client import ChatCompletionClient, ChatReply, ToolCall
from assistant.tools import SellOutcome, ToolOutcome, ToolResult, execute_tool_call, tool_definitions

__all__ = [
    "ChatCompletionClient",
    "ChatReply",
    "CommandInterpreter",
    "CommandResult",
    "SellOutcome",
    "ToolCall",
    "ToolOutcome",
    "ToolResult",
    "execute_tool_call",
    "tool_definitions",
]
