from dataclasses import dataclass

from app.core.config import settings


@dataclass
class LevelChange:
    previous_level: int
    new_level: int
    tokens_earned: int

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.previous_level


def level_for_xp(xp_points: int, xp_per_level: int = None) -> int:
    xp_per_level = xp_per_level or settings.XP_PER_LEVEL
    return max(xp_points, 0) // xp_per_level + 1


def sync_level(user) -> LevelChange:
    """Bring ``user.level`` in line with ``user.xp_points``.

    Each level gained credits one avatar unlock token. A lower computed level
    only corrects the stored value; tokens are never taken back.
    """
    previous_level = user.level or 1
    new_level = level_for_xp(user.xp_points or 0)
    tokens_earned = 0
    if new_level > previous_level:
        tokens_earned = new_level - previous_level
        user.avatar_unlock_tokens = (user.avatar_unlock_tokens or 0) + tokens_earned
    user.level = new_level
    return LevelChange(previous_level=previous_level, new_level=new_level, tokens_earned=tokens_earned)


def grant_xp(user, amount: int) -> LevelChange:
    """Add ``amount`` XP to an already row-locked user and apply level-ups."""
    if amount < 0:
        raise ValueError("XP grants must be non-negative")
    user.xp_points = (user.xp_points or 0) + amount
    return sync_level(user)
