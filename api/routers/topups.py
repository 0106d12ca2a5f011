"""
Top-up Webhook Endpoint.

Receives payment confirmations from the payment gateway and credits the
provider's wallet. Deliveries are idempotent on the gateway reference.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from api.dependencies import get_topup_service
from api.models import ErrorResponse, TopupResponse
from config.settings import Settings, get_settings
from domain.errors import StoreError, TopupVerificationFailed
from services.topup_service import PaymentConfirmation, TopupService, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "X-Payment-Signature"
CHARGE_SUCCESS_EVENT = "charge.success"


@router.post(
    "/topups/webhook",
    response_model=TopupResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Payment Gateway Webhook",
    description="Credit a wallet from a verified payment confirmation. Safe to redeliver."
)
async def payment_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    service: TopupService = Depends(get_topup_service),
):
    """
    Ingest a payment confirmation.

    **Security:**
    - The raw body must carry a valid HMAC-SHA512 signature in `X-Payment-Signature`
    - Requests are rejected when no webhook secret is configured

    **Example payload:**
    ```json
    {
      "event": "charge.success",
      "data": {
        "reference": "ref_123",
        "amount": 10000,
        "status": "success",
        "metadata": {"account_id": "landlord-1"}
      }
    }
    ```
    """
    body = await request.body()

    if not settings.payment_webhook_secret:
        logger.error("Payment webhook received but PAYMENT_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=503, detail="Payment webhook is not configured")

    if not verify_signature(body, request.headers.get(SIGNATURE_HEADER), settings.payment_webhook_secret):
        logger.warning("Payment webhook signature rejected")
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Body is not valid JSON")

    if not isinstance(payload, dict) or payload.get("event") != CHARGE_SUCCESS_EVENT:
        return TopupResponse(status="ignored")

    try:
        confirmation = PaymentConfirmation.from_payload(payload)
        receipt = await run_in_threadpool(service.ingest, confirmation)
    except TopupVerificationFailed as e:
        logger.warning("Top-up verification failed", extra={"reason": str(e)})
        raise HTTPException(status_code=400, detail=f"Top-up verification failed: {e}")
    except StoreError:
        raise HTTPException(status_code=503, detail="Wallet is temporarily unavailable")

    return TopupResponse(
        status="credited" if receipt.applied else "duplicate",
        external_reference=receipt.external_reference,
        credits=receipt.credits,
        balance=receipt.balance,
    )
