"""
Reward application service
Applies dough coins, streak and completion counters to a profile
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import ProfileNotFound, require_user
from app.models import Profile
from app.schemas.progress import ProfileResponse
from app.services.store import Store
from app.utils.cache import cache_service
from app.utils.clock import local_date, to_storage, utcnow

logger = logging.getLogger(__name__)


class RewardService:
    """
    Service for applying completion rewards

    Coins only ever increase here. A streak-qualified call extends the
    streak by exactly one; limiting that to once per day is the caller's
    job (see claim_streak_day).
    """

    def streak_qualifies(self, correct: int, total: int) -> bool:
        """Accuracy of at least STREAK_ACCURACY_THRESHOLD (60%)"""
        if total <= 0:
            return False
        return correct / total >= settings.STREAK_ACCURACY_THRESHOLD

    def claim_streak_day(self, store: Store, user_id: UUID, now: Optional[datetime] = None) -> bool:
        """
        Reserve today's streak increment

        Returns False when the user's streak was already extended today.
        """
        today = local_date(now)
        claimed = store.claim_streak_day(user_id, today)
        if not claimed:
            logger.info(f"Streak already extended today for user {user_id}")
        return claimed

    def current_streak(self, profile: Any, now: Optional[datetime] = None) -> int:
        """
        Streak as of `now`

        The stored streak_days only changes on the next claim, so a streak
        last extended before yesterday reads as 0.
        """
        last = profile.last_streak_date
        if last is not None and last < local_date(now) - timedelta(days=1):
            return 0
        return profile.streak_days

    def _with_current_streak(self, response: ProfileResponse, now: Optional[datetime]) -> ProfileResponse:
        streak = self.current_streak(response, now)
        if streak != response.streak_days:
            return response.model_copy(update={"streak_days": streak})
        return response

    def snapshot(self, profile: Profile, now: Optional[datetime] = None) -> ProfileResponse:
        """ProfileResponse for a profile row, with a lapsed streak reported as 0"""
        return self._with_current_streak(ProfileResponse.model_validate(profile), now)

    def apply(
        self,
        store: Store,
        user_id: UUID,
        amount: int,
        streak_qualified: bool,
        lesson_completed: bool = False,
        quiz_completed: bool = False,
        now: Optional[datetime] = None
    ) -> Profile:
        """
        Apply coin, streak and counter deltas in one write

        Runs inside the caller's transaction; does not commit.

        Raises:
            NotAuthenticated: no user id
            ValueError: negative amount
            ProfileNotFound: no profile row for the user
        """
        require_user(user_id)
        if amount < 0:
            raise ValueError("Reward amount must not be negative")

        updated = store.increment_profile(
            user_id=user_id,
            coins=amount,
            streak=streak_qualified,
            lessons=1 if lesson_completed else 0,
            quizzes=1 if quiz_completed else 0,
            today=local_date(now),
            now=to_storage(now or utcnow())
        )
        if updated == 0:
            raise ProfileNotFound(f"No profile for user {user_id}")

        store.on_commit(lambda: cache_service.invalidate_profile(user_id))
        profile = store.get_profile(user_id)

        logger.info(
            f"Reward applied: user={user_id}, coins=+{amount}, "
            f"streak={'+1' if streak_qualified else 'unchanged'} -> {profile.streak_days}, "
            f"balance={profile.dough_coins}"
        )

        return profile

    def get_profile(
        self,
        db: Session,
        user_id: UUID,
        now: Optional[datetime] = None
    ) -> ProfileResponse:
        """
        Cache-first profile read

        The cache holds the stored row; the streak lapse is applied on read.
        """
        require_user(user_id)

        cached = cache_service.get(cache_service.profile_key(user_id))
        if cached:
            return self._with_current_streak(ProfileResponse(**cached), now)

        profile = Store(db).get_profile(user_id)
        if profile is None:
            raise ProfileNotFound(f"No profile for user {user_id}")

        response = ProfileResponse.model_validate(profile)
        cache_service.set(
            cache_service.profile_key(user_id),
            response.model_dump(mode="json"),
            ttl=settings.PROFILE_CACHE_TTL
        )
        return self._with_current_streak(response, now)


# Global instance
reward_service = RewardService()
