from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.services.coupons import CouponType


class CouponBase(BaseModel):
    type: CouponType
    value: Decimal = Field(ge=0)
    description: str = Field(default="", max_length=500)
    min_order_amount: Decimal | None = Field(default=None, ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=1)
    expires_at: datetime | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_percentage(self):
        if self.type == CouponType.percentage and self.value > 100:
            raise ValueError("Percentage coupons cannot exceed 100")
        return self


class CouponCreate(CouponBase):
    code: str = Field(min_length=3, max_length=40)
    usage_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_usage(self):
        if self.usage_limit is not None and self.usage_count > self.usage_limit:
            raise ValueError("Usage count cannot exceed usage limit")
        return self

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        cleaned = (value or "").strip().upper()
        if len(cleaned) < 3:
            raise ValueError("Coupon code must be at least 3 characters")
        return cleaned


class CouponUpdate(BaseModel):
    type: CouponType | None = None
    value: Decimal | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=500)
    min_order_amount: Decimal | None = Field(default=None, ge=0)
    max_discount: Decimal | None = Field(default=None, ge=0)
    usage_limit: int | None = Field(default=None, ge=1)
    usage_count: int | None = Field(default=None, ge=0)
    expires_at: datetime | None = None
    is_active: bool | None = None


class CouponRead(CouponBase):
    model_config = ConfigDict(from_attributes=True)

    code: str
    usage_count: int
    created_at: datetime | None = None
