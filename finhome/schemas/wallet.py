"""Wallet schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from finhome.schemas.common import reject_null

WalletType = Literal["cash", "bank_account", "credit_card", "e_wallet", "investment", "other"]

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class WalletCreate(BaseModel):
    """Schema for creating a wallet."""

    name: str = Field(..., min_length=1, max_length=100, description="Wallet name")
    wallet_type: WalletType = Field(..., description="Kind of account")
    balance: Decimal = Field(default=Decimal(0), ge=0, description="Opening balance")
    currency: Literal["VND", "USD"] = Field(default="VND")
    description: Optional[str] = Field(None, max_length=500)
    icon: str = Field(default="wallet", max_length=50)
    color: str = Field(default="#3B82F6", pattern=HEX_COLOR)
    bank_name: Optional[str] = Field(None, max_length=100)
    account_number: Optional[str] = Field(None, max_length=50)
    is_default: bool = False
    include_in_budget: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Wallet name cannot be blank")
        return v


class WalletUpdate(BaseModel):
    """Schema for updating a wallet. Only provided fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    wallet_type: Optional[WalletType] = None
    balance: Optional[Decimal] = None
    currency: Optional[Literal["VND", "USD"]] = None
    description: Optional[str] = Field(None, max_length=500)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    bank_name: Optional[str] = Field(None, max_length=100)
    account_number: Optional[str] = Field(None, max_length=50)
    is_default: Optional[bool] = None
    include_in_budget: Optional[bool] = None

    @field_validator(
        "name", "wallet_type", "balance", "currency", "icon", "color", "is_default", "include_in_budget"
    )
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class WalletResponse(BaseModel):
    """Schema for wallet response."""

    id: UUID
    user_id: UUID
    name: str
    wallet_type: str
    description: Optional[str]
    balance: Decimal
    currency: str
    icon: str
    color: str
    bank_name: Optional[str]
    account_number: Optional[str]
    is_default: bool
    include_in_budget: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WalletListResponse(BaseModel):
    wallets: list[WalletResponse]
    total_balance: Decimal


class WalletDeleteResponse(BaseModel):
    """Outcome of a delete: soft when the wallet still has transactions."""

    id: UUID
    soft_deleted: bool
    message: str
