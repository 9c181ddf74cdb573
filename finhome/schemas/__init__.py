"""Schemas package."""

from finhome.schemas.common import MessageResponse, Pagination
from finhome.schemas.transaction import (
    PaginatedTransactionResponse,
    TransactionCreate,
    TransactionResponse,
    TransactionUpdate,
)
from finhome.schemas.wallet import WalletCreate, WalletResponse, WalletUpdate

__all__ = [
    "MessageResponse",
    "Pagination",
    "PaginatedTransactionResponse",
    "TransactionCreate",
    "TransactionResponse",
    "TransactionUpdate",
    "WalletCreate",
    "WalletResponse",
    "WalletUpdate",
]
