import logging

from sqlalchemy.orm import Session

from app.core.constants import NotificationTypeEnum
from app.core.exceptions import AlreadyClaimedError, NotCompletedError, NotFoundError
from app.crud.avatar import avatar as crud_avatar, user_avatar as crud_user_avatar
from app.crud.chapter import chapter as crud_chapter
from app.crud.course import course as crud_course
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.crud.user import user as crud_user
from app.models.user import User
from app.schemas.avatar import Avatar as AvatarSchema
from app.schemas.course_enrollment import CourseRewardClaimResult, RewardClaimResult
from app.services.course_progress import course_progress_service
from app.services.notification import notification_service
from app.utils.leveling import grant_xp

logger = logging.getLogger(__name__)


class RewardService:
    """XP and avatar grants for finished chapters and courses.

    Every grant is guarded by a write that can only succeed once (a unique
    claim row or a conditional flag update), so duplicate requests cannot
    credit the same reward twice.
    """

    def _award_xp(self, db: Session, *, user_id: int, amount: int):
        user = crud_user.get_for_update(db, id=user_id)
        change = grant_xp(user, amount)
        db.flush()
        if change.leveled_up:
            notification_service.notify_level_up(
                db, user_id=user.id, new_level=change.new_level, tokens_earned=change.tokens_earned
            )
        return user, change

    def claim_chapter_reward(
        self, db: Session, *, enrollment_id: int, chapter_id: int, current_user: User
    ) -> RewardClaimResult:
        enrollment = course_progress_service.get_owned_enrollment_for_update(db, enrollment_id, current_user)
        chapter = crud_chapter.get_in_course(db, chapter_id=chapter_id, course_id=enrollment.course_id)
        if not chapter:
            raise NotFoundError("Chapter")

        if chapter.id not in enrollment.completed_chapter_ids:
            raise NotCompletedError("Chapter not completed yet")
        if chapter.id in enrollment.claimed_chapter_ids:
            raise AlreadyClaimedError("Chapter reward already claimed")
        if not crud_enrollment.add_claimed_chapter(db, enrollment=enrollment, chapter_id=chapter.id):
            raise AlreadyClaimedError("Chapter reward already claimed")

        user, change = self._award_xp(db, user_id=enrollment.user_id, amount=chapter.xp_reward)
        logger.info(f"User {user.id} claimed {chapter.xp_reward} XP for chapter {chapter.id}")
        return RewardClaimResult(
            claimed_xp=chapter.xp_reward,
            new_total_xp=user.xp_points,
            new_level=user.level,
            leveled_up=change.leveled_up,
            tokens_earned=change.tokens_earned,
            new_tokens=user.avatar_unlock_tokens,
        )

    def claim_course_reward(self, db: Session, *, enrollment_id: int, current_user: User) -> CourseRewardClaimResult:
        enrollment = course_progress_service.get_owned_enrollment_for_update(db, enrollment_id, current_user)
        if enrollment.progress < 100:
            raise NotCompletedError("Course not completed yet")
        if enrollment.is_course_reward_claimed:
            raise AlreadyClaimedError("Course reward already claimed")
        if not crud_enrollment.mark_course_reward_claimed(db, enrollment_id=enrollment.id):
            raise AlreadyClaimedError("Course reward already claimed")
        db.refresh(enrollment, attribute_names=["is_course_reward_claimed"])

        course = crud_course.get(db, id=enrollment.course_id)
        user, change = self._award_xp(db, user_id=enrollment.user_id, amount=course.completion_xp_bonus)

        reward_avatar = None
        if course.reward_avatar_id:
            reward_avatar = crud_avatar.get(db, id=course.reward_avatar_id)
            if crud_user_avatar.grant(db, user_id=user.id, avatar_id=course.reward_avatar_id):
                logger.info(f"User {user.id} unlocked avatar {course.reward_avatar_id} from course {course.id}")

        notification_service.create_notification(
            db,
            user_id=user.id,
            title="Course Completed!",
            message=f"You completed {course.title} and earned {course.completion_xp_bonus} XP!",
            type=NotificationTypeEnum.SUCCESS,
            link=f"/courses/{course.id}",
        )
        logger.info(f"User {user.id} claimed course reward for course {course.id}")
        return CourseRewardClaimResult(
            claimed_xp=course.completion_xp_bonus,
            new_total_xp=user.xp_points,
            new_level=user.level,
            leveled_up=change.leveled_up,
            tokens_earned=change.tokens_earned,
            new_tokens=user.avatar_unlock_tokens,
            reward_avatar=AvatarSchema.model_validate(reward_avatar) if reward_avatar else None,
        )

reward_service = RewardService()
