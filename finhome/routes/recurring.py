"""Recurring transaction endpoints, including the cron-invoked processor."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.config import settings
from finhome.database import get_db
from finhome.dependencies import get_current_user_id, verify_processor_key
from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.schemas.common import Pagination
from finhome.schemas.recurring import (
    PaginatedRecurringResponse,
    ProcessedTransactionResponse,
    ProcessingErrorResponse,
    ProcessingOverviewResponse,
    ProcessingStatus,
    ProcessResponse,
    RecurringCreate,
    RecurringResponse,
    RecurringUpdate,
)
from finhome.services.recurring_service import RecurringService

logger = get_logger(__name__)

router = APIRouter()


async def get_recurring_service(db: AsyncSession = Depends(get_db)) -> RecurringService:
    """Get recurring service instance."""
    return RecurringService(db)


@router.post("/process", response_model=ProcessResponse, dependencies=[Depends(verify_processor_key)])
async def process_recurring(
    service: RecurringService = Depends(get_recurring_service),
) -> ProcessResponse:
    """Materialize every due recurring transaction.

    Called by the scheduled trigger job with the processor API key. Failures of
    individual templates are reported in ``errors`` and do not fail the request.
    """
    try:
        result = await service.process_due()
    except Exception as e:
        logger.error("Recurring processing failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to process recurring transactions")

    return ProcessResponse(
        success=True,
        processed_count=result.processed_count,
        error_count=result.error_count,
        processed_transactions=[
            ProcessedTransactionResponse(**vars(item)) for item in result.processed_transactions
        ],
        errors=[ProcessingErrorResponse(**vars(item)) for item in result.errors],
        processed_at=result.processed_at,
    )


@router.get("/process", response_model=ProcessingOverviewResponse)
async def processing_overview(
    user_id: UUID = Depends(get_current_user_id),
    service: RecurringService = Depends(get_recurring_service),
) -> ProcessingOverviewResponse:
    """Templates due now and in the upcoming days for the current user."""
    try:
        overview = await service.get_due_overview(
            user_id, today=date.today(), upcoming_days=settings.recurring_upcoming_days
        )
        return ProcessingOverviewResponse(
            due=[RecurringResponse.model_validate(t) for t in overview["due"]],
            upcoming=[RecurringResponse.model_validate(t) for t in overview["upcoming"]],
            processing_status=ProcessingStatus(
                has_due_transactions=overview["has_due_transactions"],
                due_count=overview["due_count"],
                upcoming_count=overview["upcoming_count"],
            ),
        )
    except Exception as e:
        logger.error("Failed to get recurring overview", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get recurring overview")


@router.post("", response_model=RecurringResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring(
    recurring: RecurringCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: RecurringService = Depends(get_recurring_service),
) -> RecurringResponse:
    """Create a recurring transaction template."""
    try:
        created = await service.create_recurring(user_id=user_id, **recurring.model_dump())
        return RecurringResponse.model_validate(created)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create recurring transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create recurring transaction")


@router.get("", response_model=PaginatedRecurringResponse)
async def list_recurring(
    is_active: Optional[bool] = Query(None),
    transaction_type: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    service: RecurringService = Depends(get_recurring_service),
) -> PaginatedRecurringResponse:
    """List recurring templates ordered by next due date."""
    try:
        items, total = await service.list_recurring(
            user_id, is_active=is_active, transaction_type=transaction_type, limit=limit, offset=offset
        )
        return PaginatedRecurringResponse(
            items=[RecurringResponse.model_validate(t) for t in items],
            pagination=Pagination.build(total, limit, offset),
        )
    except Exception as e:
        logger.error("Failed to list recurring transactions", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list recurring transactions")


@router.get("/{recurring_id}", response_model=RecurringResponse)
async def get_recurring(
    recurring_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: RecurringService = Depends(get_recurring_service),
) -> RecurringResponse:
    try:
        template = await service.get_recurring(recurring_id, user_id)
        if not template:
            raise HTTPException(status_code=404, detail=f"Recurring transaction {recurring_id} not found")
        return RecurringResponse.model_validate(template)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get recurring transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get recurring transaction")


@router.put("/{recurring_id}", response_model=RecurringResponse)
async def update_recurring(
    recurring_id: UUID,
    recurring_update: RecurringUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: RecurringService = Depends(get_recurring_service),
) -> RecurringResponse:
    try:
        updated = await service.update_recurring(
            recurring_id, user_id, **recurring_update.model_dump(exclude_unset=True)
        )
        return RecurringResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update recurring transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update recurring transaction")


@router.delete("/{recurring_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recurring(
    recurring_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: RecurringService = Depends(get_recurring_service),
) -> None:
    try:
        await service.delete_recurring(recurring_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete recurring transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete recurring transaction")
