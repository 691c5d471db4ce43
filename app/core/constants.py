from enum import Enum


FREE_ENROLLMENT_RECEIPT = "COUPON_FREE"
NOTIFICATION_FEED_LIMIT = 20

class RoleEnum(str, Enum):
    STUDENT = "student"
    TUTOR = "tutor"
    ADMIN = "admin"

class PackageTierEnum(str, Enum):
    BASIC = "basic"
    ADVANCED = "advanced"
    PREMIUM = "premium"

PACKAGE_TIER_RANK = {
    PackageTierEnum.BASIC: 1,
    PackageTierEnum.ADVANCED: 2,
    PackageTierEnum.PREMIUM: 3,
}

class EnrollmentStatusEnum(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    COMPLETED = "completed"

# Statuses counted in Course.enrolled_students and allowed to read content
ENROLLED_STATUSES = (EnrollmentStatusEnum.ACTIVE, EnrollmentStatusEnum.COMPLETED)

class CourseLevelEnum(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"

class CourseStatusEnum(str, Enum):
    ONGOING = "ongoing"
    COMPLETE = "complete"
    DISABLED = "disabled"

class MaterialTypeEnum(str, Enum):
    VIDEO = "video"
    PDF = "pdf"
    LINK = "link"
    SLIDE = "slide"
    IMAGE = "image"

class DiscountTypeEnum(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"

class PromoRejectionReasonEnum(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    LIMIT_REACHED = "limit_reached"
    COURSE_NOT_APPLICABLE = "course_not_applicable"
    PACKAGE_NOT_APPLICABLE = "package_not_applicable"

class NotificationTypeEnum(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

class AvatarTypeEnum(str, Enum):
    DEFAULT = "default"
    PREMIUM = "premium"
    REWARD = "reward"

class UnlockConditionEnum(str, Enum):
    NONE = "none"
    COURSE_COMPLETION = "course_completion"
    LEVEL_UP = "level_up"
    TOKEN = "token"

class FriendRequestStatusEnum(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"

class FriendStatusEnum(str, Enum):
    NONE = "none"
    PENDING = "pending"
    INCOMING = "incoming"
    FRIENDS = "friends"
