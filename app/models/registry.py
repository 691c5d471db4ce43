# Imports every mapped class so string relationships resolve and
# Base.metadata is complete for migrations and test schemas.
from app.core.database import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.avatar import Avatar, UserAvatar  # noqa: F401
from app.models.course import Course, CoursePackage  # noqa: F401
from app.models.chapter import Chapter, Material  # noqa: F401
from app.models.promo_code import PromoCode  # noqa: F401
from app.models.course_enrollment import CourseEnrollment  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.models.social import Follow, FriendRequest  # noqa: F401
