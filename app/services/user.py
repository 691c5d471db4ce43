from typing import Optional

from sqlalchemy.orm import Session

from app.core.constants import ENROLLED_STATUSES, EnrollmentStatusEnum, FriendRequestStatusEnum, FriendStatusEnum
from app.core.exceptions import NotFoundError
from app.crud.avatar import user_avatar as crud_user_avatar
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.crud.social import follow as crud_follow, friend_request as crud_friend_request
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.avatar import Avatar as AvatarSchema
from app.schemas.social import ProfileCourse, PublicProfile
from app.schemas.user import UserProfile, UserProfileUpdate, UserSummary


class UserService:

    def get_profile(self, db: Session, *, current_user: User) -> UserProfile:
        user = crud_user.get(db, id=current_user.id)
        return UserProfile.model_validate(user)

    def update_profile(self, db: Session, *, current_user: User, profile_in: UserProfileUpdate) -> UserProfile:
        user = crud_user.get_for_update(db, id=current_user.id)
        user = crud_user.update(db, db_obj=user, obj_in=profile_in)
        return UserProfile.model_validate(user)

    def _friend_status(self, db: Session, viewer_id: int, user_id: int):
        request = crud_friend_request.get_between(db, user_a=viewer_id, user_b=user_id)
        if request is None:
            return FriendStatusEnum.NONE, None
        if request.status == FriendRequestStatusEnum.ACCEPTED:
            return FriendStatusEnum.FRIENDS, request.id
        if request.requester_id == viewer_id:
            return FriendStatusEnum.PENDING, request.id
        return FriendStatusEnum.INCOMING, request.id

    def get_public_profile(self, db: Session, *, user_id: int, viewer: Optional[User] = None) -> PublicProfile:
        """Profile as seen by ``viewer``; privacy flags hide avatars and courses from everyone but the owner."""
        user = crud_user.get(db, id=user_id)
        if not user or not user.is_active:
            raise NotFoundError("User")
        is_self = viewer is not None and viewer.id == user.id

        profile = PublicProfile(
            user=UserSummary.model_validate(user),
            bio=user.bio,
            xp_points=user.xp_points,
            followers_count=crud_follow.count_followers(db, user_id=user.id),
            following_count=crud_follow.count_following(db, user_id=user.id),
        )
        if viewer is not None and not is_self:
            profile.friend_status, profile.friend_request_id = self._friend_status(db, viewer.id, user.id)

        if user.show_avatars or is_self:
            profile.unlocked_avatars = [
                AvatarSchema.model_validate(a) for a in crud_user_avatar.get_unlocked_avatars(db, user_id=user.id)
            ]
        if user.show_courses or is_self:
            for enrollment in crud_enrollment.get_by_user_and_statuses(db, user.id, ENROLLED_STATUSES):
                course = ProfileCourse(
                    course_id=enrollment.course_id,
                    title=enrollment.course.title,
                    thumbnail_url=enrollment.course.thumbnail_url,
                    status=enrollment.status,
                )
                if enrollment.status == EnrollmentStatusEnum.COMPLETED:
                    profile.completed_courses.append(course)
                else:
                    profile.enrolled_courses.append(course)
        return profile

user_service = UserService()
