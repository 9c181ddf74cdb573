"""Transaction schemas for request/response validation."""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from finhome.schemas.common import Pagination, reject_null

TransactionType = Literal["income", "expense", "transfer"]
SortOption = Literal["date_desc", "date_asc", "amount_desc", "amount_asc"]


class TransactionCreate(BaseModel):
    """Schema for creating a new transaction."""

    wallet_id: UUID = Field(..., description="Source wallet")
    transaction_type: TransactionType = Field(..., description="income, expense or transfer")
    amount: Decimal = Field(..., gt=0, description="Transaction amount")
    transaction_date: Optional[date_type] = Field(None, description="Defaults to today")
    category_id: Optional[UUID] = Field(None, description="Required for income and expense")
    transfer_to_wallet_id: Optional[UUID] = Field(None, description="Required for transfers")
    transfer_fee: Decimal = Field(default=Decimal(0), ge=0)
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    merchant_name: Optional[str] = Field(None, max_length=200)
    tags: List[str] = Field(default_factory=list, max_length=20)

    @field_validator("amount", "transfer_fee")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Round to 2 decimal places."""
        return round(v, 2)

    @model_validator(mode="after")
    def check_type_requirements(self) -> "TransactionCreate":
        if self.transaction_type == "transfer":
            if self.transfer_to_wallet_id is None:
                raise ValueError("transfer_to_wallet_id is required for transfers")
            if self.transfer_to_wallet_id == self.wallet_id:
                raise ValueError("Cannot transfer to the same wallet")
        elif self.category_id is None:
            raise ValueError(f"category_id is required for {self.transaction_type} transactions")
        return self


class TransactionUpdate(BaseModel):
    """Schema for updating an existing transaction."""

    amount: Optional[Decimal] = Field(None, gt=0)
    transaction_date: Optional[date_type] = None
    category_id: Optional[UUID] = None
    transfer_fee: Optional[Decimal] = Field(None, ge=0)
    description: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=2000)
    merchant_name: Optional[str] = Field(None, max_length=200)
    tags: Optional[List[str]] = Field(None, max_length=20)

    @field_validator("amount", "transaction_date", "transfer_fee", "tags")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        if v is not None:
            return round(v, 2)
        return v


class TransactionResponse(BaseModel):
    """Schema for transaction response."""

    id: UUID
    user_id: UUID
    wallet_id: UUID
    transaction_type: str
    amount: Decimal
    currency: str
    transaction_date: date_type
    category_id: Optional[UUID]
    transfer_to_wallet_id: Optional[UUID]
    transfer_fee: Decimal
    description: Optional[str]
    notes: Optional[str]
    merchant_name: Optional[str]
    tags: List[str]
    recurring_transaction_id: Optional[UUID]
    is_confirmed: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedTransactionResponse(BaseModel):
    """Schema for paginated transaction list response."""

    items: list[TransactionResponse]
    pagination: Pagination
