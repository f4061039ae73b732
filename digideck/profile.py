"""
Tamer profile: usage counters, achievements and the evolving partner.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from .constants import DEFAULT_ACHIEVEMENTS, PARTNER_STAGES
from .models import Achievement, ProfileStats, UserProfile

logger = logging.getLogger(__name__)


class ActivityKind(str, Enum):
    cards_viewed = "cards_viewed"
    decks_analyzed = "decks_analyzed"
    pages_visited = "pages_visited"


# Unlock rule per achievement id, evaluated after every counter update.
ACHIEVEMENT_RULES: Dict[str, Callable[[UserProfile], bool]] = {
    "first_visit": lambda p: p.stats.pages_visited >= 1,
    "card_viewer": lambda p: p.stats.cards_viewed >= 25,
    "meta_analyst": lambda p: p.stats.decks_analyzed >= 5,
    "profile_creator": lambda p: len(p.nickname) > 0,
    "evolution_master": lambda p: p.total_activity >= 150,
}


def default_achievements() -> List[Achievement]:
    return [
        Achievement(id=aid, name=name, description=description)
        for aid, name, description in DEFAULT_ACHIEVEMENTS
    ]


def new_profile(user_id: str) -> UserProfile:
    return UserProfile(
        user_id=user_id, stats=ProfileStats(), achievements=default_achievements()
    )


def unlock_achievements(profile: UserProfile) -> List[Achievement]:
    """
    Unlock every achievement whose rule now holds. Already unlocked ones
    keep their original timestamp.

    Returns:
        The achievements unlocked by this call.
    """
    now = datetime.now(timezone.utc)
    unlocked = []
    for achievement in profile.achievements:
        if achievement.unlocked:
            continue
        rule = ACHIEVEMENT_RULES.get(achievement.id)
        if rule is not None and rule(profile):
            achievement.unlocked = True
            achievement.unlocked_at = now
            unlocked.append(achievement)
    return unlocked


@dataclass(frozen=True)
class PartnerStage:
    name: str
    threshold: int
    next_name: Optional[str] = None
    next_threshold: Optional[int] = None


def partner_stage(total_activity: int) -> PartnerStage:
    """The partner's current form for a given total activity."""
    index = 0
    for i, (_, threshold) in enumerate(PARTNER_STAGES):
        if total_activity >= threshold:
            index = i
    name, threshold = PARTNER_STAGES[index]
    if index + 1 < len(PARTNER_STAGES):
        next_name, next_threshold = PARTNER_STAGES[index + 1]
        return PartnerStage(name, threshold, next_name, next_threshold)
    return PartnerStage(name, threshold)


def progress_to_next_stage(total_activity: int) -> float:
    """Percent (0-100) of the way from the current stage to the next; 100 at the final stage."""
    stage = partner_stage(total_activity)
    if stage.next_threshold is None:
        return 100.0
    span = stage.next_threshold - stage.threshold
    return (total_activity - stage.threshold) / span * 100


class ProfileManager:
    """Loads, updates and persists the profile of one user."""

    def __init__(self, db, user_id: str):
        self.db = db
        self.user_id = user_id
        self._profile: Optional[UserProfile] = None

    def load(self) -> UserProfile:
        """
        The stored profile, or a fresh one if the user has none yet.
        Achievements added since the profile was saved are appended.
        """
        if self._profile is None:
            profile = self.db.get_profile(self.user_id)
            if profile is None:
                logger.info(f"Creating profile for {self.user_id}")
                profile = new_profile(self.user_id)
            known = {a.id for a in profile.achievements}
            missing = [a for a in default_achievements() if a.id not in known]
            if missing:
                profile.achievements = profile.achievements + missing
            self._profile = profile
        return self._profile

    def increment_activity(self, kind: ActivityKind, amount: int = 1) -> List[Achievement]:
        """
        Add `amount` to one counter and to the total activity, unlock any
        achievements now earned, and save.

        Returns:
            The newly unlocked achievements.

        Raises:
            ValueError: If `amount` is negative.
        """
        if amount < 0:
            raise ValueError("Activity amount cannot be negative.")
        kind = ActivityKind(kind)
        profile = self.load()
        setattr(profile.stats, kind.value, getattr(profile.stats, kind.value) + amount)
        profile.total_activity += amount
        unlocked = unlock_achievements(profile)
        for achievement in unlocked:
            logger.info(f"Achievement unlocked: {achievement.name}")
        self.db.save_profile(profile)
        return unlocked

    def set_nickname(self, nickname: str) -> List[Achievement]:
        """Set the display name; returns achievements it unlocked."""
        profile = self.load()
        profile.nickname = nickname.strip()
        unlocked = unlock_achievements(profile)
        self.db.save_profile(profile)
        return unlocked
