"""
CS Inquiries Router — Customer-service inbox.

Tabs filter by status; any status may move to any other status.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_actor_id, get_db
from core.errors import NotFound
from db.gateway import StoreGateway

router = APIRouter(prefix="/cs-inquiries", tags=["cs-inquiries"])
logger = structlog.get_logger()

CSStatus = Literal["open", "in_progress", "waiting", "resolved", "closed"]


# ─── Schemas ────────────────────────────────────────────────────────────────


class CSInquiryResponse(BaseModel):
    id: UUID
    customer_name: str
    content: str
    product_name: str | None
    status: str
    ai_reply: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CSStatusUpdate(BaseModel):
    status: CSStatus


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("", response_model=list[CSInquiryResponse])
async def list_cs_inquiries(
    status: CSStatus | None = None,
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """List inquiries newest first, optionally for one status tab."""
    return await StoreGateway(db, actor_id).list_cs_inquiries(status=status)


@router.patch("/{inquiry_id}", response_model=CSInquiryResponse)
async def update_cs_status(
    inquiry_id: UUID,
    update: CSStatusUpdate,
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """Move an inquiry to a new status."""
    inquiry = await StoreGateway(db, actor_id).set_cs_status(inquiry_id, update.status)
    if inquiry is None:
        raise NotFound("CS inquiry not found")

    logger.info("cs_inquiry.status_changed", inquiry_id=str(inquiry_id), status=update.status)
    return inquiry
