"""
Lead Unlock API Endpoints.

Endpoints for previewing and paying for lead unlocks.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.dependencies import Caller, get_unlock_gateway, require_provider
from api.models import ErrorResponse, UnlockQuoteResponse, UnlockResponse
from services.unlock_service import UnlockGateway, UnlockStatus

router = APIRouter()


@router.post(
    "/leads/{lead_id}/unlock",
    response_model=UnlockResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Unlock Lead",
    description="Pay credits to reveal a lead's contact details. Repeat calls never charge twice."
)
def unlock_lead(
    lead_id: str,
    caller: Caller = Depends(require_provider),
    gateway: UnlockGateway = Depends(get_unlock_gateway),
):
    """
    Unlock a lead for the calling provider.

    **Outcomes** (branch on `status`, not on `message`):
    - `unlocked`: credits debited, contact revealed
    - `already_unlocked`: previously paid; contact revealed, nothing charged
    - `insufficient_credits`: nothing charged; top up `required_credits`
    - `not_found`: lead does not exist or is not addressed to the caller

    Retrying the call is always safe.

    **Success response:**
    ```json
    {
      "success": true,
      "status": "unlocked",
      "message": "Lead unlocked. Contact details revealed.",
      "remaining_balance": 10,
      "revealed_contact": "+2348012345678",
      "cost_charged": 10
    }
    ```
    """
    result = gateway.unlock(caller.account_id, lead_id)

    if result.status is UnlockStatus.TRANSIENT_FAILURE:
        raise HTTPException(status_code=503, detail=result.message)

    return UnlockResponse(
        success=result.success,
        status=result.status.value,
        message=result.message,
        remaining_balance=result.remaining_balance,
        revealed_contact=result.revealed_contact,
        cost_charged=result.cost_charged,
        required_credits=result.required_credits,
    )


@router.get(
    "/leads/{lead_id}/quote",
    response_model=UnlockQuoteResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Preview Unlock Cost",
    description="Show what unlocking a lead would cost without charging anything."
)
def quote_unlock(
    lead_id: str,
    caller: Caller = Depends(require_provider),
    gateway: UnlockGateway = Depends(get_unlock_gateway),
):
    quote = gateway.quote(caller.account_id, lead_id)
    if quote is None:
        raise HTTPException(status_code=404, detail=f"Lead not found: {lead_id}")

    return UnlockQuoteResponse(
        lead_id=quote.lead_id,
        cost=quote.cost,
        balance=quote.balance,
        already_unlocked=quote.already_unlocked,
        affordable=quote.affordable,
    )
