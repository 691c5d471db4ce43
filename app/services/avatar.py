import logging
from typing import List

from sqlalchemy.orm import Session

from app.core.constants import AvatarTypeEnum
from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, PreconditionFailedError
from app.crud.avatar import avatar as crud_avatar, user_avatar as crud_user_avatar
from app.crud.course import course as crud_course
from app.crud.user import user as crud_user
from app.models.avatar import Avatar
from app.models.user import User
from app.schemas.avatar import (
    Avatar as AvatarSchema, AvatarCreate, AvatarUnlockResult, AvatarUpdate, AvatarWithStatus
)
from app.schemas.user import UserProfile

logger = logging.getLogger(__name__)


class AvatarService:

    def _get_active_or_raise(self, db: Session, avatar_id: int) -> Avatar:
        avatar = crud_avatar.get(db, id=avatar_id)
        if not avatar or not avatar.is_active:
            raise NotFoundError("Avatar")
        return avatar

    def _is_owned(self, db: Session, avatar: Avatar, user_id: int) -> bool:
        if avatar.type == AvatarTypeEnum.DEFAULT:
            return True
        return crud_user_avatar.get_by_user_and_avatar(db, user_id=user_id, avatar_id=avatar.id) is not None

    def list_avatars(self, db: Session) -> List[AvatarSchema]:
        return [AvatarSchema.model_validate(a) for a in crud_avatar.get_all_newest_first(db)]

    def create_avatar(self, db: Session, *, avatar_in: AvatarCreate) -> AvatarSchema:
        avatar = crud_avatar.create(db, obj_in=avatar_in)
        logger.info(f"Avatar {avatar.id} '{avatar.name}' created")
        return AvatarSchema.model_validate(avatar)

    def update_avatar(self, db: Session, *, avatar_id: int, avatar_in: AvatarUpdate) -> AvatarSchema:
        avatar = crud_avatar.get(db, id=avatar_id)
        if not avatar:
            raise NotFoundError("Avatar")
        return AvatarSchema.model_validate(crud_avatar.update(db, db_obj=avatar, obj_in=avatar_in))

    def delete_avatar(self, db: Session, *, avatar_id: int) -> None:
        if not crud_avatar.delete(db, id=avatar_id):
            raise NotFoundError("Avatar")
        logger.info(f"Avatar {avatar_id} deleted")

    def get_gallery(self, db: Session, *, current_user: User) -> List[AvatarWithStatus]:
        """Every active avatar with whether the caller owns it.

        Locked avatars that are handed out as a course reward carry the title
        of the course that grants them.
        """
        unlocked_ids = crud_user_avatar.get_unlocked_ids(db, user_id=current_user.id)
        gallery = []
        for avatar in crud_avatar.get_active(db):
            is_unlocked = avatar.type == AvatarTypeEnum.DEFAULT or avatar.id in unlocked_ids
            required_course_title = None
            if not is_unlocked:
                course = crud_course.get_by_reward_avatar(db, avatar_id=avatar.id)
                required_course_title = course.title if course else None
            gallery.append(
                AvatarWithStatus(
                    **AvatarSchema.model_validate(avatar).model_dump(),
                    is_unlocked=is_unlocked,
                    required_course_title=required_course_title,
                )
            )
        return gallery

    def unlock_avatar(self, db: Session, *, avatar_id: int, current_user: User) -> AvatarUnlockResult:
        avatar = self._get_active_or_raise(db, avatar_id)
        if self._is_owned(db, avatar, current_user.id):
            raise ConflictError("Avatar already unlocked")
        if crud_course.get_by_reward_avatar(db, avatar_id=avatar.id):
            raise PreconditionFailedError("This avatar is earned by completing its course")

        if not crud_user.spend_unlock_token(db, user_id=current_user.id):
            raise PreconditionFailedError("No avatar unlock tokens left")
        if not crud_user_avatar.grant(db, user_id=current_user.id, avatar_id=avatar.id):
            raise ConflictError("Avatar already unlocked")

        user = crud_user.get_for_update(db, id=current_user.id)
        logger.info(f"User {user.id} spent a token on avatar {avatar.id}")
        return AvatarUnlockResult(avatar_id=avatar.id, avatar_unlock_tokens=user.avatar_unlock_tokens)

    def equip_avatar(self, db: Session, *, avatar_id: int, current_user: User) -> UserProfile:
        avatar = self._get_active_or_raise(db, avatar_id)
        if not self._is_owned(db, avatar, current_user.id):
            raise ForbiddenError("Avatar is locked")
        user = crud_user.get_for_update(db, id=current_user.id)
        user = crud_user.update(db, db_obj=user, obj_in={"current_avatar_url": avatar.image_url})
        return UserProfile.model_validate(user)

avatar_service = AvatarService()
