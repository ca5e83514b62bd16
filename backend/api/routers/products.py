"""
Products Router — Inventory listing for the orders/inventory page.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_actor_id, get_db
from db.gateway import StoreGateway

router = APIRouter(prefix="/products", tags=["products"])


class ProductResponse(BaseModel):
    id: UUID
    product_name: str
    unique_id: str | None
    stock_count: int
    sold_count: int
    created_at: datetime

    model_config = {"from_attributes": True}


@router.get("", response_model=list[ProductResponse])
async def list_products(
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """List the actor's products, newest first."""
    return await StoreGateway(db, actor_id).list_products()
