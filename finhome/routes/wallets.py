"""Wallet API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from finhome.database import get_db
from finhome.dependencies import get_current_user
from finhome.exceptions import LimitExceededError, NotFoundError
from finhome.logging_config import get_logger
from finhome.models.user import User
from finhome.schemas.wallet import (
    WalletCreate,
    WalletDeleteResponse,
    WalletListResponse,
    WalletResponse,
    WalletUpdate,
)
from finhome.services.wallet_service import WalletService

logger = get_logger(__name__)

router = APIRouter()


async def get_wallet_service(db: AsyncSession = Depends(get_db)) -> WalletService:
    """Get wallet service instance."""
    return WalletService(db)


@router.get("", response_model=WalletListResponse)
async def list_wallets(
    include_inactive: bool = False,
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
) -> WalletListResponse:
    """List the user's wallets, newest first, with the combined budget balance."""
    try:
        wallets = await service.list_wallets(current_user.id, include_inactive=include_inactive)
        total = await service.get_total_balance(current_user.id)
        return WalletListResponse(
            wallets=[WalletResponse.model_validate(w) for w in wallets], total_balance=total
        )
    except Exception as e:
        logger.error("Failed to list wallets", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list wallets")


@router.post("", response_model=WalletResponse, status_code=201)
async def create_wallet(
    wallet: WalletCreate,
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
) -> WalletResponse:
    """Create a wallet.

    Raises:
        HTTPException: 400 for a duplicate name, 403 when the tier's wallet limit is reached
    """
    try:
        created = await service.create_wallet(current_user, **wallet.model_dump())
        return WalletResponse.model_validate(created)
    except LimitExceededError as e:
        raise HTTPException(status_code=403, detail=e.to_detail())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create wallet", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create wallet")


@router.get("/{wallet_id}", response_model=WalletResponse)
async def get_wallet(
    wallet_id: UUID,
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
) -> WalletResponse:
    """Get a single wallet by ID."""
    try:
        wallet = await service.get_wallet(wallet_id, current_user.id)
        if not wallet:
            raise HTTPException(status_code=404, detail=f"Wallet {wallet_id} not found")
        return WalletResponse.model_validate(wallet)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get wallet", wallet_id=str(wallet_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get wallet")


@router.put("/{wallet_id}", response_model=WalletResponse)
async def update_wallet(
    wallet_id: UUID,
    wallet_update: WalletUpdate,
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
) -> WalletResponse:
    """Update a wallet. Only provided fields are changed."""
    try:
        updated = await service.update_wallet(
            wallet_id, current_user.id, **wallet_update.model_dump(exclude_unset=True)
        )
        return WalletResponse.model_validate(updated)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update wallet", wallet_id=str(wallet_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update wallet")


@router.delete("/{wallet_id}", response_model=WalletDeleteResponse)
async def delete_wallet(
    wallet_id: UUID,
    current_user: User = Depends(get_current_user),
    service: WalletService = Depends(get_wallet_service),
) -> WalletDeleteResponse:
    """Delete a wallet; wallets with transactions are deactivated instead."""
    try:
        soft_deleted = await service.delete_wallet(wallet_id, current_user.id)
        message = "Wallet deactivated because it has transactions" if soft_deleted else "Wallet deleted"
        return WalletDeleteResponse(id=wallet_id, soft_deleted=soft_deleted, message=message)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error("Failed to delete wallet", wallet_id=str(wallet_id), error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete wallet")
