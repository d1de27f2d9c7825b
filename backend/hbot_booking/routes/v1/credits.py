"""Credits V1 Routes - the caller's session-credit ledger."""

import asyncio

from fastapi import APIRouter, Depends

from ...api.dependencies.auth import require_user_id
from ...api.dependencies.services import get_credit_service
from ...schemas.credits import CreditLedgerResponse, CreditPackageResponse
from ...services.credit_service import CreditService

# V1 router - mounted at /api/v1/credits
router = APIRouter(tags=["credits"])


@router.get("", response_model=CreditLedgerResponse)
async def get_my_credits(
    user_id: str = Depends(require_user_id),
    credit_service: CreditService = Depends(get_credit_service),
) -> CreditLedgerResponse:
    """Packages in ledger order plus the unexpired balance per credit type."""
    packages = await asyncio.to_thread(credit_service.credits, user_id)
    balances = await asyncio.to_thread(credit_service.credit_summary, user_id)
    return CreditLedgerResponse(
        user_id=user_id,
        packages=[CreditPackageResponse.model_validate(package) for package in packages],
        active_balances=balances,
    )
