"""Transaction API endpoints."""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user_id
from finhome.exceptions import NotFoundError
from finhome.logging_config import get_logger
from finhome.schemas.common import Pagination
from finhome.schemas.transaction import (
    PaginatedTransactionResponse,
    SortOption,
    TransactionCreate,
    TransactionResponse,
    TransactionType,
    TransactionUpdate,
)
from finhome.services.transaction_service import TransactionService

logger = get_logger(__name__)

router = APIRouter()


async def get_transaction_service(db: AsyncSession = Depends(get_db)) -> TransactionService:
    """Get transaction service instance."""
    return TransactionService(db)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction: TransactionCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionResponse:
    """Create a transaction and update wallet balances.

    Args:
        transaction: Transaction data
        user_id: Authenticated user ID
        service: Transaction service

    Returns:
        Created transaction

    Raises:
        HTTPException: 400 on a business rule violation, 404 for a wallet the user does not own
    """
    try:
        created = await service.create_transaction(user_id=user_id, **transaction.model_dump())
        return TransactionResponse.model_validate(created)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create transaction")


@router.get("", response_model=PaginatedTransactionResponse)
async def list_transactions(
    wallet_id: Optional[UUID] = Query(None, description="Filter by wallet"),
    transaction_type: Optional[TransactionType] = Query(None, description="Filter by type"),
    category_id: Optional[UUID] = Query(None, description="Filter by category"),
    start_date: Optional[date] = Query(None, description="Filter from this date"),
    end_date: Optional[date] = Query(None, description="Filter until this date"),
    search: Optional[str] = Query(None, max_length=200, description="Search description or merchant"),
    sort: SortOption = Query("date_desc"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: UUID = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service),
) -> PaginatedTransactionResponse:
    """List transactions with filters and pagination."""
    try:
        items, total = await service.list_transactions(
            user_id=user_id,
            wallet_id=wallet_id,
            transaction_type=transaction_type,
            category_id=category_id,
            start_date=start_date,
            end_date=end_date,
            search=search,
            sort=sort,
            limit=limit,
            offset=offset,
        )
        return PaginatedTransactionResponse(
            items=[TransactionResponse.model_validate(t) for t in items],
            pagination=Pagination.build(total, limit, offset),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to list transactions", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list transactions")


@router.get("/recent", response_model=list[TransactionResponse])
async def recent_transactions(
    limit: int = Query(10, ge=1, le=50),
    user_id: UUID = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service),
) -> list[TransactionResponse]:
    """Most recent transactions."""
    try:
        items = await service.get_recent_transactions(user_id, limit=limit)
        return [TransactionResponse.model_validate(t) for t in items]
    except Exception as e:
        logger.error("Failed to get recent transactions", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get recent transactions")


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionResponse:
    """Get a single transaction by ID."""
    try:
        transaction = await service.get_transaction(transaction_id, user_id)
        if not transaction:
            raise HTTPException(status_code=404, detail=f"Transaction {transaction_id} not found")
        return TransactionResponse.model_validate(transaction)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get transaction")


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: UUID,
    transaction_update: TransactionUpdate,
    user_id: UUID = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionResponse:
    """Update a transaction; wallet balances follow the change."""
    try:
        updated = await service.update_transaction(
            transaction_id, user_id, **transaction_update.model_dump(exclude_unset=True)
        )
        return TransactionResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update transaction")


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction(
    transaction_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    service: TransactionService = Depends(get_transaction_service),
) -> None:
    """Delete a transaction and revert its balance effect."""
    try:
        await service.delete_transaction(transaction_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete transaction", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete transaction")
