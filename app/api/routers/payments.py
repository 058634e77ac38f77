from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_payconiq_gateway
from app.schemas.payment import PaymentRead, RefundCreate, TransactionCreate
from app.services.payment_service import PayconiqGateway

router = APIRouter(prefix="/payments/payconiq", tags=["payments"])

# PayconiqClient blocks on httpx.Client; plain ``def`` routes run in the threadpool.


@router.post("/transactions", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def create_transaction(
    payload: TransactionCreate,
    gateway: PayconiqGateway = Depends(get_payconiq_gateway),
):
    return gateway.start_checkout(payload.amount, payload.currency, payload.callback_url)


@router.get("/transactions/{transaction_id}", response_model=PaymentRead)
def get_transaction(
    transaction_id: str,
    gateway: PayconiqGateway = Depends(get_payconiq_gateway),
):
    return gateway.get_payment_status(transaction_id)


@router.post("/transactions/{transaction_id}/refunds", status_code=status.HTTP_201_CREATED)
def create_refund(
    transaction_id: str,
    payload: RefundCreate,
    gateway: PayconiqGateway = Depends(get_payconiq_gateway),
) -> dict[str, Any]:
    return gateway.refund(
        transaction_id,
        payload.amount,
        payload.currency,
        payment_method=payload.payment_method,
        description=payload.description,
    )


@router.post("/callback", status_code=status.HTTP_200_OK)
async def payconiq_callback(
    request: Request,
    gateway: PayconiqGateway = Depends(get_payconiq_gateway),
):
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    payment = await run_in_threadpool(gateway.handle_callback, payload if isinstance(payload, dict) else {})
    if payment is None:
        return {"status": "ignored"}
    return {"status": "ok", "transaction_id": payment.transaction_id, "payment_status": payment.status}
