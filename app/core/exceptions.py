"""Service-level error types.

Services raise these; ``app.middleware.exceptions.service_exception_handler``
renders them into the standard ``ErrorResponse`` envelope.
"""
from typing import Any, Dict, Optional

from fastapi import status

from app.core.constants import PromoRejectionReasonEnum


class ServiceError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found"

    def __init__(self, resource: str = "Resource", message: Optional[str] = None):
        super().__init__(message or f"{resource} not found", details={"resource": resource})


class ValidationFailedError(ServiceError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class InvalidPackageError(ValidationFailedError):
    code = "INVALID_PACKAGE"

    def __init__(self, package: Any):
        super().__init__(f"Unknown package tier: {package}", details={"package": str(package)})


class PreconditionFailedError(ServiceError):
    code = "PRECONDITION_FAILED"
    default_message = "Precondition failed"


class NotCompletedError(PreconditionFailedError):
    code = "NOT_COMPLETED"
    default_message = "Not completed yet"


class AlreadyClaimedError(PreconditionFailedError):
    code = "ALREADY_CLAIMED"
    default_message = "Reward already claimed"


class AlreadyEnrolledError(PreconditionFailedError):
    code = "ALREADY_ENROLLED"
    default_message = "Already enrolled in this course"


class ReceiptRequiredError(PreconditionFailedError):
    code = "RECEIPT_REQUIRED"
    default_message = "Payment receipt is required"


class InvalidStatusTransitionError(PreconditionFailedError):
    code = "INVALID_STATUS_TRANSITION"
    default_message = "Enrollment is not awaiting review"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You do not have permission to perform this action"


class NotEnrolledError(ForbiddenError):
    code = "NOT_ENROLLED"
    default_message = "Not enrolled in this course"


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    default_message = "Could not validate credentials"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists"


_PROMO_MESSAGES = {
    PromoRejectionReasonEnum.NOT_FOUND: "Invalid promo code",
    PromoRejectionReasonEnum.INACTIVE: "This promo code is inactive",
    PromoRejectionReasonEnum.NOT_YET_VALID: "This promo code is not valid yet",
    PromoRejectionReasonEnum.EXPIRED: "This promo code has expired",
    PromoRejectionReasonEnum.LIMIT_REACHED: "This promo code usage limit has been reached",
    PromoRejectionReasonEnum.COURSE_NOT_APPLICABLE: "This promo code is not valid for this course",
    PromoRejectionReasonEnum.PACKAGE_NOT_APPLICABLE: "This promo code is not valid for this package",
}


class PromoCodeRejectedError(ServiceError):
    code = "PROMO_CODE_REJECTED"

    def __init__(self, reason: PromoRejectionReasonEnum):
        self.reason = reason
        if reason == PromoRejectionReasonEnum.NOT_FOUND:
            self.status_code = status.HTTP_404_NOT_FOUND
        super().__init__(_PROMO_MESSAGES[reason], details={"reason": reason.value})
