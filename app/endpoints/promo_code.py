from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.response import APIResponse
from app.schemas.promo_code import PromoCode, PromoCodeCreate, PromoCodeValidateRequest, PromoCodeValidation
from app.services.promo_code import promo_code_service
from app.utils import deps

router = APIRouter()


@router.post("/validate", response_model=APIResponse[PromoCodeValidation])
def validate_promo_code(
    *,
    db: Session = Depends(deps.get_db),
    request_in: PromoCodeValidateRequest,
    current_user: User = Depends(deps.get_current_user)
):
    """Check a code without consuming a use."""
    result = promo_code_service.validate_promo_code(db, request=request_in)
    return APIResponse(message="Promo code is valid", data=result)


@router.post("/", response_model=APIResponse[PromoCode], status_code=status.HTTP_201_CREATED)
def create_promo_code(
    *,
    db: Session = Depends(deps.get_transactional_db),
    promo_in: PromoCodeCreate,
    admin: User = Depends(deps.get_current_admin)
):
    promo = promo_code_service.create_promo_code(db, obj_in=promo_in)
    return APIResponse(message="Promo code created successfully", data=PromoCode.model_validate(promo))


@router.get("/", response_model=APIResponse[List[PromoCode]])
def list_promo_codes(
    db: Session = Depends(deps.get_db),
    admin: User = Depends(deps.get_current_admin),
    skip: int = 0,
    limit: int = 100
):
    promos = promo_code_service.list_promo_codes(db, skip=skip, limit=limit)
    return APIResponse(message="Promo codes retrieved", data=[PromoCode.model_validate(p) for p in promos])


@router.patch("/{promo_code_id}/toggle", response_model=APIResponse[PromoCode])
def toggle_promo_code(
    *,
    db: Session = Depends(deps.get_transactional_db),
    promo_code_id: int,
    admin: User = Depends(deps.get_current_admin)
):
    promo = promo_code_service.toggle_promo_code(db, promo_code_id=promo_code_id)
    state = "activated" if promo.is_active else "deactivated"
    return APIResponse(message=f"Promo code {state}", data=PromoCode.model_validate(promo))
