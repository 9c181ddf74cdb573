"""Admin back-office schemas."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel

from finhome.schemas.auth import UserResponse
from finhome.schemas.common import Pagination


class AdminUserListResponse(BaseModel):
    items: List[UserResponse]
    pagination: Pagination


class AdminUserUpdate(BaseModel):
    subscription_tier: Optional[Literal["free", "premium", "professional"]] = None
    is_active: Optional[bool] = None
    is_admin: Optional[bool] = None


class SystemStatusResponse(BaseModel):
    counts: Dict[str, int]
    services: Dict[str, Dict[str, Any]]
