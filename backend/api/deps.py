"""
Speed.Sales API Dependencies

Dependency injection for DB sessions, auth, actor scope and the
text-generation client.
"""

import uuid
from collections.abc import AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from assistant.interpreter import CommandInterpreter
from assistant.llm_client import ChatCompletionClient
from core.config import get_settings
from core.errors import Unauthorized
from db.session import AsyncSessionLocal

settings = get_settings()
security = HTTPBearer(auto_error=False)

# Dev actor used when debug=true bypasses auth
DEV_ACTOR_ID = "00000000-0000-0000-0000-000000000001"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Decode JWT and return user payload. Bypassed in debug mode."""
    if settings.debug:
        return {"sub": DEV_ACTOR_ID, "email": "dev@speed.sales"}

    if credentials is None:
        raise Unauthorized("Unauthorized")

    from core.security import decode_access_token

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise Unauthorized("Invalid or expired token")
    return payload


async def get_actor_id(user: dict = Depends(get_current_user)) -> uuid.UUID:
    """The owning actor every query is scoped to."""
    from core.security import actor_id_from_payload

    actor_id = actor_id_from_payload(user)
    if actor_id is None:
        raise Unauthorized("No actor in token")
    return actor_id


def get_chat_client() -> ChatCompletionClient:
    """Text-generation client built from settings. Raises UpstreamUnavailable if unconfigured."""
    return ChatCompletionClient.from_settings(get_settings())


def get_interpreter(client: ChatCompletionClient = Depends(get_chat_client)) -> CommandInterpreter:
    return CommandInterpreter(client, max_iterations=get_settings().command_max_iterations)
