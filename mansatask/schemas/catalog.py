from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import Field, field_validator

from mansatask.schemas import CamelModel, to_naive_utc

Money = Annotated[Decimal, Field(ge=Decimal("0.01"), max_digits=12, decimal_places=2)]


class CreateProductRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    price: Money
    image_url: Optional[str] = Field(default=None, max_length=1024)
    quantity: Optional[int] = Field(default=None, ge=0)


class UpdateProductRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price: Optional[Money] = None
    image_url: Optional[str] = Field(default=None, max_length=1024)
    quantity: Optional[int] = Field(default=None, ge=0)


class CreatePaymentLinkRequest(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    amount: Money
    product_id: Optional[str] = None
    is_active: bool = True
    expires_after_days: Optional[int] = Field(default=None, ge=1, le=365)
    expires_at: Optional[datetime] = None
    max_uses: Optional[int] = Field(default=None, ge=1)

    @field_validator("expires_at")
    @classmethod
    def normalize_expires_at(cls, value):
        return to_naive_utc(value)


class UpdatePaymentLinkRequest(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    amount: Optional[Money] = None
    product_id: Optional[str] = None
    is_active: Optional[bool] = None
    expires_after_days: Optional[int] = Field(default=None, ge=1, le=365)
    expires_at: Optional[datetime] = None
    # 0 or null removes the limit
    max_uses: Optional[int] = Field(default=None, ge=0)

    @field_validator("expires_at")
    @classmethod
    def normalize_expires_at(cls, value):
        return to_naive_utc(value)
