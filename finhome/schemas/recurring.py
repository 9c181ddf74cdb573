"""Recurring transaction schemas.

The processor payloads use camelCase keys because they are consumed by the
cron trigger job rather than the web client.
"""

from datetime import date as date_type, datetime
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from finhome.schemas.common import Pagination, reject_null

Frequency = Literal["daily", "weekly", "monthly", "yearly"]


class RecurringCreate(BaseModel):
    """Schema for creating a recurring transaction template."""

    name: str = Field(..., min_length=1, max_length=100)
    wallet_id: UUID
    transaction_type: Literal["income", "expense", "transfer"]
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = Field(None, max_length=500)
    category_id: Optional[UUID] = None
    transfer_to_wallet_id: Optional[UUID] = None
    frequency: Frequency
    frequency_interval: int = Field(default=1, ge=1, le=365)
    start_date: date_type
    end_date: Optional[date_type] = None
    max_occurrences: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_schedule(self) -> "RecurringCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class RecurringUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = Field(None, max_length=500)
    category_id: Optional[UUID] = None
    frequency: Optional[Frequency] = None
    frequency_interval: Optional[int] = Field(None, ge=1, le=365)
    end_date: Optional[date_type] = None
    max_occurrences: Optional[int] = Field(None, ge=1)
    next_due_date: Optional[date_type] = None
    is_active: Optional[bool] = None

    @field_validator("name", "amount", "frequency", "frequency_interval", "next_due_date", "is_active")
    @classmethod
    def not_null(cls, v):
        return reject_null(v)


class RecurringResponse(BaseModel):
    """Schema for recurring template response."""

    id: UUID
    user_id: UUID
    wallet_id: UUID
    name: str
    transaction_type: str
    amount: Decimal
    description: Optional[str]
    category_id: Optional[UUID]
    transfer_to_wallet_id: Optional[UUID]
    frequency: str
    frequency_interval: int
    start_date: date_type
    end_date: Optional[date_type]
    max_occurrences: Optional[int]
    next_due_date: date_type
    occurrences_created: int
    last_processed_at: Optional[datetime]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedRecurringResponse(BaseModel):
    items: List[RecurringResponse]
    pagination: Pagination


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ProcessedTransactionResponse(CamelModel):
    recurring_transaction_id: UUID
    recurring_transaction_name: str
    new_transaction_id: UUID
    amount: Decimal
    transaction_type: str
    is_completed: bool


class ProcessingErrorResponse(CamelModel):
    recurring_transaction_id: UUID
    recurring_transaction_name: str
    error: str


class ProcessResponse(CamelModel):
    """Result of a processor run."""

    success: bool
    processed_count: int
    error_count: int
    processed_transactions: List[ProcessedTransactionResponse]
    errors: List[ProcessingErrorResponse]
    processed_at: datetime


class ProcessingStatus(CamelModel):
    has_due_transactions: bool
    due_count: int
    upcoming_count: int


class ProcessingOverviewResponse(CamelModel):
    """Due and upcoming templates for the current user."""

    due: List[RecurringResponse]
    upcoming: List[RecurringResponse]
    processing_status: ProcessingStatus
