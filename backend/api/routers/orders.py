"""
Orders Router — Sales recorded by the command console.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_actor_id, get_db
from db.gateway import StoreGateway

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderResponse(BaseModel):
    id: UUID
    product_id: UUID
    product_name: str
    quantity: int
    customer_name: str
    channel: str
    total_price: int
    status: str
    created_at: datetime


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    limit: int = Query(100, ge=1, le=500),
    actor_id: UUID = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    """List orders newest first, with the product name attached."""
    rows = await StoreGateway(db, actor_id).list_orders(limit=limit)
    return [
        OrderResponse(
            id=order.id,
            product_id=order.product_id,
            product_name=product_name,
            quantity=order.quantity,
            customer_name=order.customer_name,
            channel=order.channel,
            total_price=order.total_price,
            status=order.status,
            created_at=order.created_at,
        )
        for order, product_name in rows
    ]
