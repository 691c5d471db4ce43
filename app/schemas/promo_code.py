from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from app.core.constants import DiscountTypeEnum, PackageTierEnum


class PromoCodeCreate(BaseModel):
    code: str = Field(..., min_length=3)
    discount_type: DiscountTypeEnum
    discount_value: Decimal = Field(..., ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = Field(default=None, ge=0)
    applicable_courses: List[int] = []
    applicable_packages: List[PackageTierEnum] = []

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if len(v) < 3:
            raise ValueError("Promo code must be at least 3 characters long.")
        return v


class PromoCode(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    discount_type: DiscountTypeEnum
    discount_value: Decimal
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = None
    used_count: int
    is_active: bool
    applicable_course_ids: List[int] = []
    applicable_packages: List[PackageTierEnum] = []


class PromoCodeValidateRequest(BaseModel):
    code: str = Field(..., min_length=1)
    course_id: Optional[int] = None
    package_tier: Optional[PackageTierEnum] = None


class PromoCodeValidation(BaseModel):
    valid: bool
    code: str
    discount_type: DiscountTypeEnum
    discount_value: Decimal
    base_price: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    final_price: Optional[Decimal] = None

