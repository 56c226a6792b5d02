"""
提现API路由 - 卖家申请，管理员审核与打款
"""
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import Actor, get_wallet_service, require_admin, require_seller
from application.dto import (
    PaginationParams,
    WithdrawalCompleteDTO,
    WithdrawalCreateDTO,
    WithdrawalResponseDTO,
    WithdrawalReviewDTO,
)
from application.services.wallet_service import WalletService
from core.response import PaginatedData, Response as ApiResponse, paginated_response, success_response

router = APIRouter(
    prefix="/withdrawals",
    tags=["Withdrawals"]
)


@router.post("", summary="申请提现", response_model=ApiResponse[WithdrawalResponseDTO])
async def request_withdrawal(
    payload: WithdrawalCreateDTO,
    seller: Actor = Depends(require_seller),
    service: WalletService = Depends(get_wallet_service),
):
    """
    申请提现

    - 收款信息必须完整
    - 金额不低于平台最低提现额，且不超过当前余额
    - 申请成功后金额立即从余额扣除
    """
    withdrawal = await service.request_withdrawal(seller.id, payload.amount)
    return success_response(data=withdrawal, message="Withdrawal request submitted")


@router.get("", summary="我的提现", response_model=ApiResponse[PaginatedData[WithdrawalResponseDTO]])
async def list_my_withdrawals(
    params: PaginationParams = Depends(),
    seller: Actor = Depends(require_seller),
    service: WalletService = Depends(get_wallet_service),
):
    page = await service.list_withdrawals(seller.id, params.page, params.size)
    return paginated_response(page)


@router.get("/open", summary="待处理提现（管理员）", response_model=ApiResponse[List[WithdrawalResponseDTO]])
async def list_open_withdrawals(
    _admin: Actor = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
):
    return success_response(data=await service.list_open_withdrawals())


@router.put("/{withdrawal_id}/review", summary="审核提现（管理员）", response_model=ApiResponse[WithdrawalResponseDTO])
async def review_withdrawal(
    withdrawal_id: int,
    payload: WithdrawalReviewDTO,
    admin: Actor = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
):
    """驳回时全额退回卖家钱包"""
    withdrawal = await service.review_withdrawal(withdrawal_id, admin.id, payload.decision, payload.notes)
    return success_response(data=withdrawal, message=f"Withdrawal {withdrawal.status.value.lower()}")


@router.put(
    "/{withdrawal_id}/processing",
    summary="开始打款（管理员）",
    response_model=ApiResponse[WithdrawalResponseDTO],
)
async def start_processing(
    withdrawal_id: int,
    admin: Actor = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
):
    return success_response(data=await service.start_processing(withdrawal_id, admin.id))


@router.put("/{withdrawal_id}/complete", summary="完成打款（管理员）", response_model=ApiResponse[WithdrawalResponseDTO])
async def complete_withdrawal(
    withdrawal_id: int,
    payload: WithdrawalCompleteDTO,
    admin: Actor = Depends(require_admin),
    service: WalletService = Depends(get_wallet_service),
):
    withdrawal = await service.complete_withdrawal(
        withdrawal_id,
        admin.id,
        payload.transaction_id,
        payload.payment_proof,
    )
    return success_response(data=withdrawal, message="Withdrawal completed")
