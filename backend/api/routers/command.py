"""
Command Router — The chat-style command console.

POST runs one free-text note through the command interpreter.
GET returns the actor's recent console history.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_actor_id, get_db, get_interpreter
from assistant.interpreter import CommandInterpreter
from core.config import get_settings
from db.gateway import StoreGateway

router = APIRouter(prefix="/command", tags=["command"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class CommandRequest(BaseModel):
    content: str = ""


class CommandResponse(BaseModel):
    message: str
    log_id: str = Field(..., serialization_alias="logId")


class LogEntryResponse(BaseModel):
    id: UUID
    created_at: datetime
    content: str
    ai_response: str

    model_config = {"from_attributes": True}


class LogHistoryResponse(BaseModel):
    logs: list[LogEntryResponse]


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("", response_model=CommandResponse, response_model_by_alias=True)
async def run_command(
    request: CommandRequest,
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
    interpreter: CommandInterpreter = Depends(get_interpreter),
):
    """Interpret one business note and apply the resulting writes."""
    result = await interpreter.interpret(db, actor_id, request.content)
    return CommandResponse(message=result.summary, log_id=str(result.log_id))


@router.get("", response_model=LogHistoryResponse)
async def list_command_logs(
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Most recent console entries, newest first."""
    gateway = StoreGateway(db, actor_id)
    entries = await gateway.recent_logs(limit=get_settings().command_log_history_limit)
    return LogHistoryResponse(logs=[LogEntryResponse.model_validate(e) for e in entries])
