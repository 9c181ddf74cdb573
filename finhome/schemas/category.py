"""Category schemas."""

from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    category_type: Literal["expense", "income"]
    name: str = Field(..., min_length=1, max_length=100)
    icon: str = Field(default="tag", max_length=50)
    color: str = Field(default="#6B7280", pattern=r"^#[0-9A-Fa-f]{6}$")
    sort_order: int = Field(default=100, ge=0)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    sort_order: Optional[int] = Field(None, ge=0)


class CategoryResponse(BaseModel):
    """Schema for category response. ``is_system`` marks categories shared by all users."""

    id: UUID
    user_id: Optional[UUID]
    category_type: str
    name: str
    category_key: str
    icon: str
    color: str
    sort_order: int
    is_system: bool

    model_config = {"from_attributes": True}
