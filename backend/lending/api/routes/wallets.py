"""Wallet Routes - create wallets, read balances, deposit and withdraw."""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from lending.api.dependencies import get_wallet_service
from lending.schemas.wallet import AmountRequest, WalletCreate, WalletResponse
from lending.services.wallet_service import WalletService

router = APIRouter(prefix="/api/v1/wallets", tags=["wallets"])


@router.post("", response_model=WalletResponse, status_code=status.HTTP_201_CREATED)
async def create_wallet(
    body: WalletCreate, service: WalletService = Depends(get_wallet_service),
):
    wallet = await service.create_wallet(body.user_id, body.initial_balance)
    return WalletResponse.from_record(wallet)


@router.get("/user/{user_id}", response_model=WalletResponse)
async def get_user_wallet(
    user_id: UUID, service: WalletService = Depends(get_wallet_service),
):
    return WalletResponse.from_record(await service.get_by_user(user_id))


@router.get("/{wallet_id}", response_model=WalletResponse)
async def get_wallet(
    wallet_id: UUID, service: WalletService = Depends(get_wallet_service),
):
    return WalletResponse.from_record(await service.get_wallet(wallet_id))


@router.post("/{wallet_id}/deposit", response_model=WalletResponse)
async def deposit(
    wallet_id: UUID,
    body: AmountRequest,
    service: WalletService = Depends(get_wallet_service),
):
    return WalletResponse.from_record(await service.deposit(wallet_id, body.amount))


@router.post("/{wallet_id}/withdraw", response_model=WalletResponse)
async def withdraw(
    wallet_id: UUID,
    body: AmountRequest,
    service: WalletService = Depends(get_wallet_service),
):
    return WalletResponse.from_record(await service.withdraw(wallet_id, body.amount))
