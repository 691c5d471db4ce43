"""initial schema

Revision ID: 5c2d8e41a7f0
Revises:
Create Date: 2026-10-19 09:12:44.318102

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5c2d8e41a7f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Shared by several tables, so created once up front
role_enum = postgresql.ENUM('STUDENT', 'TUTOR', 'ADMIN', name='roleenum', create_type=False)
package_tier_enum = postgresql.ENUM('BASIC', 'ADVANCED', 'PREMIUM', name='packagetierenum', create_type=False)
enrollment_status_enum = postgresql.ENUM(
    'PENDING', 'ACTIVE', 'REJECTED', 'COMPLETED', name='enrollmentstatusenum', create_type=False
)
course_level_enum = postgresql.ENUM('BEGINNER', 'INTERMEDIATE', 'ADVANCED', name='courselevelenum', create_type=False)
course_status_enum = postgresql.ENUM('ONGOING', 'COMPLETE', 'DISABLED', name='coursestatusenum', create_type=False)
material_type_enum = postgresql.ENUM('VIDEO', 'PDF', 'LINK', 'SLIDE', 'IMAGE', name='materialtypeenum', create_type=False)
discount_type_enum = postgresql.ENUM('PERCENTAGE', 'FIXED', name='discounttypeenum', create_type=False)
notification_type_enum = postgresql.ENUM(
    'INFO', 'SUCCESS', 'WARNING', 'ERROR', name='notificationtypeenum', create_type=False
)
avatar_type_enum = postgresql.ENUM('DEFAULT', 'PREMIUM', 'REWARD', name='avatartypeenum', create_type=False)
unlock_condition_enum = postgresql.ENUM(
    'NONE', 'COURSE_COMPLETION', 'LEVEL_UP', 'TOKEN', name='unlockconditionenum', create_type=False
)
friend_request_status_enum = postgresql.ENUM('PENDING', 'ACCEPTED', name='friendrequeststatusenum', create_type=False)

ALL_ENUMS = (
    role_enum, package_tier_enum, enrollment_status_enum, course_level_enum, course_status_enum,
    material_type_enum, discount_type_enum, notification_type_enum, avatar_type_enum, unlock_condition_enum,
    friend_request_status_enum,
)


def upgrade() -> None:
    bind = op.get_bind()
    for enum in ALL_ENUMS:
        enum.create(bind, checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('first_name', sa.String(), nullable=True),
        sa.Column('last_name', sa.String(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('xp_points', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('avatar_unlock_tokens', sa.Integer(), nullable=False),
        sa.Column('current_avatar_url', sa.String(), nullable=True),
        sa.Column('show_avatars', sa.Boolean(), nullable=False),
        sa.Column('show_courses', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('xp_points >= 0', name='ck_users_xp_points_non_negative'),
        sa.CheckConstraint('level >= 1', name='ck_users_level_positive'),
        sa.CheckConstraint('avatar_unlock_tokens >= 0', name='ck_users_tokens_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=True)
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)

    op.create_table(
        'avatars',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('image_url', sa.String(), nullable=False),
        sa.Column('type', avatar_type_enum, nullable=False),
        sa.Column('unlock_condition', unlock_condition_enum, nullable=False),
        sa.Column('required_level', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_avatars_id'), 'avatars', ['id'], unique=False)

    op.create_table(
        'user_avatars',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('avatar_id', sa.Integer(), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['avatar_id'], ['avatars.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'avatar_id', name='uq_user_avatars_user_avatar')
    )
    op.create_index(op.f('ix_user_avatars_id'), 'user_avatars', ['id'], unique=False)
    op.create_index(op.f('ix_user_avatars_user_id'), 'user_avatars', ['user_id'], unique=False)

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('thumbnail_url', sa.String(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('level', course_level_enum, nullable=False),
        sa.Column('status', course_status_enum, nullable=False),
        sa.Column('tutor_id', sa.Integer(), nullable=True),
        sa.Column('total_duration', sa.String(), nullable=True),
        sa.Column('completion_xp_bonus', sa.Integer(), nullable=False),
        sa.Column('reward_avatar_id', sa.Integer(), nullable=True),
        sa.Column('enrolled_students', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('completion_xp_bonus >= 0', name='ck_courses_completion_xp_non_negative'),
        sa.ForeignKeyConstraint(['tutor_id'], ['users.id']),
        sa.ForeignKeyConstraint(['reward_avatar_id'], ['avatars.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_courses_id'), 'courses', ['id'], unique=False)
    op.create_index(op.f('ix_courses_title'), 'courses', ['title'], unique=False)

    op.create_table(
        'course_packages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('tier', package_tier_enum, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.CheckConstraint('price >= 0', name='ck_course_packages_price_non_negative'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('course_id', 'tier', name='uq_course_packages_course_tier')
    )
    op.create_index(op.f('ix_course_packages_id'), 'course_packages', ['id'], unique=False)

    op.create_table(
        'chapters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('is_free', sa.Boolean(), nullable=False),
        sa.Column('xp_reward', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('xp_reward >= 0', name='ck_chapters_xp_reward_non_negative'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chapters_id'), 'chapters', ['id'], unique=False)
    op.create_index(op.f('ix_chapters_course_id'), 'chapters', ['course_id'], unique=False)

    op.create_table(
        'materials',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('chapter_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', material_type_enum, nullable=False),
        sa.Column('url', sa.String(), nullable=True),
        sa.Column('min_package_tier', package_tier_enum, nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_materials_id'), 'materials', ['id'], unique=False)
    op.create_index(op.f('ix_materials_chapter_id'), 'materials', ['chapter_id'], unique=False)

    op.create_table(
        'promo_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.Column('discount_type', discount_type_enum, nullable=False),
        sa.Column('discount_value', sa.Numeric(10, 2), nullable=False),
        sa.Column('valid_from', sa.DateTime(), nullable=False),
        sa.Column('valid_until', sa.DateTime(), nullable=False),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('used_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('applicable_packages', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('discount_value >= 0', name='ck_promo_codes_discount_non_negative'),
        sa.CheckConstraint('used_count >= 0', name='ck_promo_codes_used_count_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_promo_codes_id'), 'promo_codes', ['id'], unique=False)
    op.create_index(op.f('ix_promo_codes_code'), 'promo_codes', ['code'], unique=True)

    op.create_table(
        'promo_code_courses',
        sa.Column('promo_code_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['promo_code_id'], ['promo_codes.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('promo_code_id', 'course_id')
    )

    op.create_table(
        'course_enrollments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('course_id', sa.Integer(), nullable=False),
        sa.Column('package', package_tier_enum, nullable=False),
        sa.Column('status', enrollment_status_enum, nullable=False),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False),
        sa.Column('progress', sa.Integer(), nullable=False),
        sa.Column('is_course_reward_claimed', sa.Boolean(), nullable=False),
        sa.Column('receipt_url', sa.String(), nullable=True),
        sa.Column('promo_code', sa.String(), nullable=True),
        sa.Column('promo_code_id', sa.Integer(), nullable=True),
        sa.Column('rejection_reason', sa.String(), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('amount_paid >= 0', name='ck_course_enrollments_amount_non_negative'),
        sa.CheckConstraint('progress >= 0 AND progress <= 100', name='ck_course_enrollments_progress_range'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id']),
        sa.ForeignKeyConstraint(['promo_code_id'], ['promo_codes.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'course_id', name='uq_course_enrollments_user_course')
    )
    op.create_index(op.f('ix_course_enrollments_id'), 'course_enrollments', ['id'], unique=False)
    op.create_index(op.f('ix_course_enrollments_user_id'), 'course_enrollments', ['user_id'], unique=False)
    op.create_index(op.f('ix_course_enrollments_course_id'), 'course_enrollments', ['course_id'], unique=False)

    op.create_table(
        'enrollment_completed_materials',
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('material_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['enrollment_id'], ['course_enrollments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['material_id'], ['materials.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('enrollment_id', 'material_id')
    )
    op.create_table(
        'enrollment_completed_chapters',
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('chapter_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['enrollment_id'], ['course_enrollments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('enrollment_id', 'chapter_id')
    )
    op.create_table(
        'enrollment_claimed_chapters',
        sa.Column('enrollment_id', sa.Integer(), nullable=False),
        sa.Column('chapter_id', sa.Integer(), nullable=False),
        sa.Column('claimed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['enrollment_id'], ['course_enrollments.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['chapter_id'], ['chapters.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('enrollment_id', 'chapter_id')
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', notification_type_enum, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('link', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
    op.create_index(op.f('ix_notifications_user_id'), 'notifications', ['user_id'], unique=False)

    op.create_table(
        'follows',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('follower_id', sa.Integer(), nullable=False),
        sa.Column('following_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['follower_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['following_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_follows_pair')
    )
    op.create_index(op.f('ix_follows_id'), 'follows', ['id'], unique=False)
    op.create_index(op.f('ix_follows_follower_id'), 'follows', ['follower_id'], unique=False)
    op.create_index(op.f('ix_follows_following_id'), 'follows', ['following_id'], unique=False)

    op.create_table(
        'friend_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('requester_id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('status', friend_request_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['requester_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['recipient_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('requester_id', 'recipient_id', name='uq_friend_requests_pair')
    )
    op.create_index(op.f('ix_friend_requests_id'), 'friend_requests', ['id'], unique=False)
    op.create_index(op.f('ix_friend_requests_requester_id'), 'friend_requests', ['requester_id'], unique=False)
    op.create_index(op.f('ix_friend_requests_recipient_id'), 'friend_requests', ['recipient_id'], unique=False)


def downgrade() -> None:
    for table in (
        'friend_requests', 'follows', 'notifications', 'enrollment_claimed_chapters',
        'enrollment_completed_chapters', 'enrollment_completed_materials', 'course_enrollments',
        'promo_code_courses', 'promo_codes', 'materials', 'chapters', 'course_packages', 'courses',
        'user_avatars', 'avatars', 'users',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in reversed(ALL_ENUMS):
        enum.drop(bind, checkfirst=True)
