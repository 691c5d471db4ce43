from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import AvatarTypeEnum, UnlockConditionEnum

class Avatar(Base):
    __tablename__ = "avatars"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    type = Column(Enum(AvatarTypeEnum), nullable=False, default=AvatarTypeEnum.DEFAULT)
    unlock_condition = Column(Enum(UnlockConditionEnum), nullable=False, default=UnlockConditionEnum.NONE)
    required_level = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    owners = relationship("UserAvatar", back_populates="avatar", cascade="all, delete-orphan")


class UserAvatar(Base):
    __tablename__ = "user_avatars"
    __table_args__ = (
        UniqueConstraint("user_id", "avatar_id", name="uq_user_avatars_user_avatar"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    avatar_id = Column(Integer, ForeignKey("avatars.id", ondelete="CASCADE"), nullable=False)
    unlocked_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="unlocked_avatars")
    avatar = relationship("Avatar", back_populates="owners")
