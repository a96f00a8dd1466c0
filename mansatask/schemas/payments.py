import re
from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from mansatask.schemas import CamelModel, to_naive_utc

PHONE_PATTERN = re.compile(r"^(\+237|0)[0-9]{9}$")
SLUG_PATTERN = r"^pay-[a-z0-9]+$"

ProviderName = Literal["MTN", "VODAFONE", "AIRTELTIGO"]
StatusName = Literal["PENDING", "PROCESSING", "SUCCESS", "FAILED", "CANCELLED"]


def normalize_phone(phone):
    """``0XXXXXXXXX`` and ``+237XXXXXXXXX`` both become ``+237XXXXXXXXX``."""
    if phone.startswith("+237"):
        return phone
    return "+237" + phone[1:]


class InitiatePaymentRequest(CamelModel):
    payment_link_id: Optional[str] = None
    slug: Optional[str] = Field(default=None, pattern=SLUG_PATTERN)
    customer_name: str = Field(..., min_length=2, max_length=255)
    customer_phone: str
    customer_email: Optional[EmailStr] = None
    payment_provider: ProviderName

    @field_validator("customer_phone")
    @classmethod
    def validate_phone(cls, value):
        value = value.replace(" ", "")
        if not PHONE_PATTERN.match(value):
            raise ValueError("Phone number must be a valid Cameroon number (+237XXXXXXXXX or 0XXXXXXXXX)")
        return normalize_phone(value)


class WebhookPayload(CamelModel):
    transaction_id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    provider: Optional[str] = None
    external_reference: Optional[str] = None
    failure_reason: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    timestamp: Optional[str] = None


class TransactionQuery(CamelModel):
    status: Optional[StatusName] = None
    provider: Optional[ProviderName] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value):
        return to_naive_utc(value)
