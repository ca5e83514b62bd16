"""
Marketing Router — AI copy for product listings.
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from api.deps import get_actor_id, get_chat_client
from assistant.llm_client import ChatCompletionClient
from marketing.copywriter import CopyRequest, generate_copy

router = APIRouter(prefix="/marketing", tags=["marketing"])


class GenerateRequest(BaseModel):
    product_name: str = Field("", alias="productName")
    material: str | None = None
    size: str | None = None
    handmade: bool = False
    origin: str | None = None
    key_features: str | None = Field(None, alias="keyFeatures")
    tone: str = "Simple"
    platforms: list[str] = []


class GenerateResponse(BaseModel):
    product_name: str = Field(..., serialization_alias="productName")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    content: dict[str, str]


@router.post("/generate", response_model=GenerateResponse, response_model_by_alias=True)
async def generate_marketing_copy(
    body: GenerateRequest,
    actor_id: UUID = Depends(get_actor_id),
    client: ChatCompletionClient = Depends(get_chat_client),
):
    """Generate copy for each selected platform from the maker's facts only."""
    request = CopyRequest(
        product_name=body.product_name,
        platforms=body.platforms,
        material=body.material,
        size=body.size,
        handmade=body.handmade,
        origin=body.origin,
        key_features=body.key_features,
        tone=body.tone or "Simple",
    )
    content = await generate_copy(client, request)
    return GenerateResponse(
        product_name=request.product_name,
        created_at=datetime.utcnow(),
        content=content,
    )
