from pydantic import BaseModel, ConfigDict
from typing import Optional
from app.core.constants import AvatarTypeEnum, UnlockConditionEnum


class AvatarBase(BaseModel):
    name: str
    image_url: str
    type: AvatarTypeEnum = AvatarTypeEnum.DEFAULT
    unlock_condition: UnlockConditionEnum = UnlockConditionEnum.NONE
    required_level: int = 0
    is_active: bool = True


class AvatarCreate(AvatarBase):
    pass


class AvatarUpdate(BaseModel):
    name: Optional[str] = None
    image_url: Optional[str] = None
    type: Optional[AvatarTypeEnum] = None
    unlock_condition: Optional[UnlockConditionEnum] = None
    required_level: Optional[int] = None
    is_active: Optional[bool] = None


class Avatar(AvatarBase):
    model_config = ConfigDict(from_attributes=True)

    id: int


class AvatarWithStatus(Avatar):
    is_unlocked: bool
    required_course_title: Optional[str] = None


class AvatarUnlockResult(BaseModel):
    avatar_id: int
    avatar_unlock_tokens: int
