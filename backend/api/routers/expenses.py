"""
Expenses Router — Spending log for the finance page.
"""

import datetime as dt
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_actor_id, get_db
from db.gateway import StoreGateway

router = APIRouter(prefix="/expenses", tags=["expenses"])


class ExpenseResponse(BaseModel):
    id: UUID
    date: dt.date
    description: str
    amount: int
    category: str

    model_config = {"from_attributes": True}


@router.get("", response_model=list[ExpenseResponse])
async def list_expenses(
    limit: int = Query(100, ge=1, le=500),
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """List expenses, most recent date first."""
    return await StoreGateway(db, actor_id).list_expenses(limit=limit)
