from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from app.services.payment_providers.payconiq import RefundPaymentMethod

PaymentStatus = Literal["pending", "authorized", "approved", "rejected", "cancelled", "refunded"]


class TransactionCreate(BaseModel):
    amount: int = Field(..., gt=0, description="Amount in minor currency units (cents).")
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    callback_url: Optional[str] = Field(default=None, max_length=2048)


class RefundCreate(BaseModel):
    amount: int = Field(..., gt=0)
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    payment_method: RefundPaymentMethod = RefundPaymentMethod.SDD
    description: str = Field(default="", max_length=140)


class CallbackPayload(BaseModel):
    """Body Payconiq posts to the callback URL; only the id is relied upon."""

    transaction_id: Optional[str | int] = Field(
        default=None,
        validation_alias=AliasChoices("transactionId", "_id", "transaction_id"),
    )
    status: Any = None


class PaymentRead(BaseModel):
    provider: str = "payconiq"
    transaction_id: str
    status: PaymentStatus
    provider_status: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    raw: dict[str, Any] = Field(default_factory=dict)
