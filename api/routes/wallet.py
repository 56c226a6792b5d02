"""
钱包API路由 - 余额、流水与对账
"""
from fastapi import APIRouter, Depends

from api.dependencies import Actor, get_current_actor, get_wallet_service
from application.dto import LedgerReportDTO, PaginationParams, WalletBalanceDTO, WalletTransactionDTO
from application.services.wallet_service import WalletService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response

router = APIRouter(
    prefix="/wallet",
    tags=["Wallet"]
)


@router.get("/balance", summary="钱包余额", response_model=ApiResponse[WalletBalanceDTO])
async def get_balance(
    actor: Actor = Depends(get_current_actor),
    service: WalletService = Depends(get_wallet_service),
):
    return success_response(data=await service.get_balance(actor.id))


@router.get(
    "/transactions",
    summary="钱包流水",
    response_model=ApiResponse[PaginatedData[WalletTransactionDTO]],
)
async def list_transactions(
    params: PaginationParams = Depends(),
    actor: Actor = Depends(get_current_actor),
    service: WalletService = Depends(get_wallet_service),
):
    page = await service.list_transactions(actor.id, params.page, params.size)
    return paginated_response(page)


@router.get("/reconciliation", summary="账本核对", response_model=ApiResponse[LedgerReportDTO])
async def reconcile(
    actor: Actor = Depends(get_current_actor),
    service: WalletService = Depends(get_wallet_service),
):
    """核对余额与流水汇总、前后余额链"""
    return success_response(data=await service.verify_ledger(actor.id))
