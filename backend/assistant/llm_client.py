"""
Text-Generation Client

Thin async wrapper around an OpenAI-compatible ``/chat/completions``
endpoint. One call per conversation turn, no retries: a failed call is
surfaced to the caller as UpstreamUnavailable.
"""

from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog

from core.config import Settings, get_settings
from core.errors import UpstreamUnavailable

logger = structlog.get_logger()


@dataclass
class ToolCall:
    """One structured tool invocation requested by the model."""

    id: str
    name: str
    arguments: str  # raw JSON text, validated later by the tool registry


@dataclass
class ChatReply:
    """The assistant turn of a chat completion."""

    content: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)

    @property
    def text(self) -> str:
        return (self.content or "").strip()

    def as_assistant_turn(self) -> dict[str, Any]:
        """Assistant message to append before the tool-response turns."""
        turn: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            turn["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return turn


def parse_chat_completion(payload: dict[str, Any]) -> ChatReply:
    """Extract content and tool calls from a chat-completion response body."""
    if not isinstance(payload, dict):
        return ChatReply()
    choices = payload.get("choices") or []
    if not choices:
        return ChatReply()
    message = choices[0].get("message") or {}
    if not isinstance(message, dict):
        return ChatReply()

    content = message.get("content")
    tool_calls = []
    for raw_call in message.get("tool_calls") or []:
        if not isinstance(raw_call, dict):
            continue
        function = raw_call.get("function") or {}
        name = function.get("name")
        if not name:
            continue
        arguments = function.get("arguments")
        tool_calls.append(
            ToolCall(
                id=str(raw_call.get("id") or ""),
                name=str(name),
                arguments=arguments if isinstance(arguments, str) else "{}",
            )
        )

    return ChatReply(
        content=content if isinstance(content, str) else None,
        tool_calls=tool_calls,
    )


class ChatCompletionClient:
    """Client for the text-generation backend."""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ChatCompletionClient":
        settings = settings or get_settings()
        if not settings.text_generation_configured:
            raise UpstreamUnavailable("OpenAI API key not configured")
        return cls(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.openai_timeout_seconds,
        )

    async def complete(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        response_format: dict[str, Any] | None = None,
    ) -> ChatReply:
        """Send one chat-completion request and return the assistant turn."""
        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if tools:
            body["tools"] = tools
            body["tool_choice"] = "auto"
        if response_format:
            body["response_format"] = response_format

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers=self.headers,
                    json=body,
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("llm.request_failed", status_code=e.response.status_code, model=self.model)
            raise UpstreamUnavailable(f"Text generation failed with HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("llm.request_failed", error=str(e), model=self.model)
            raise UpstreamUnavailable("Text generation backend unreachable") from e
        except ValueError as e:
            logger.error("llm.invalid_response", error=str(e), model=self.model)
            raise UpstreamUnavailable("Text generation backend returned invalid JSON") from e

        return parse_chat_completion(payload)
