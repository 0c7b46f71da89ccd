"""
Daily quiz service
One reward-bearing quiz per user per calendar day
"""
import logging
import random
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import LessonNotFound, NoQuizAvailable, require_user
from app.schemas.daily_quiz import (
    CompleteDailyQuizRequest,
    CompleteDailyQuizResponse,
    DailyQuizAttemptResponse,
    DailyQuizResponse,
    DailyQuizStatus,
)
from app.schemas.progress import ProgressResponse
from app.services.lesson_service import lesson_service
from app.services.progress_service import progress_service
from app.services.reward_service import reward_service
from app.services.store import Store
from app.utils.clock import day_start, local_date, time_until_reset, to_storage, utcnow

logger = logging.getLogger(__name__)


class DailyQuizService:
    """
    Service for daily quiz eligibility and completion

    Eligibility is a plain read. The once-a-day guarantee comes from the
    attempt insert, which the store rejects for a second attempt on the
    same day, so retries and concurrent completions award at most once.
    """

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()

    def fetch_daily_quiz(
        self,
        db: Session,
        user_id: UUID,
        now: Optional[datetime] = None
    ) -> DailyQuizResponse:
        """
        Decide whether today's quiz may be served and pick one

        Raises:
            NotAuthenticated: no user id
            NoQuizAvailable: no lesson has quiz questions
            StoreUnavailable: a store call failed
        """
        require_user(user_id)
        now = to_storage(now or utcnow())
        store = Store(db)

        attempts = store.attempts_on(user_id, local_date(now))
        if attempts:
            progress = store.get_progress(user_id, attempts[0].quiz_id)
            logger.info(f"Daily quiz already attempted today by user {user_id}")
            return self._already_completed(progress)

        progress = store.latest_progress_since(user_id, day_start(now))
        if progress is not None and progress.completed:
            logger.info(f"Daily quiz already completed today by user {user_id}")
            return self._already_completed(progress)

        candidates = lesson_service.quiz_candidates(db)
        if not candidates:
            raise NoQuizAvailable()

        quiz = self.rng.choice(candidates)
        logger.info(f"Daily quiz for user {user_id}: lesson {quiz.id} ({len(candidates)} candidates)")

        return DailyQuizResponse(quiz=quiz, already_completed=False)

    def _already_completed(self, progress) -> DailyQuizResponse:
        return DailyQuizResponse(
            quiz=None,
            already_completed=True,
            progress=ProgressResponse.model_validate(progress) if progress is not None else None
        )

    def complete_daily_quiz(
        self,
        db: Session,
        request: CompleteDailyQuizRequest,
        now: Optional[datetime] = None
    ) -> CompleteDailyQuizResponse:
        """
        Record today's quiz, reconcile progress and award the reward

        A second completion on the same day writes nothing and reports
        already_completed.

        Raises:
            NotAuthenticated: no user id
            LessonNotFound: unknown quiz lesson
            ProfileNotFound: user has no profile
            StoreUnavailable: a store call failed; nothing is committed
        """
        user_id = require_user(request.user_id)
        now = to_storage(now or utcnow())
        today = local_date(now)
        store = Store(db)

        is_correct = reward_service.streak_qualifies(request.correct_answers, request.total_questions)
        reward = request.coins_rewarded if is_correct else 0
        streak_gained = False

        with store.transaction("complete daily quiz"):
            if store.get_lesson(request.lesson_id) is None:
                raise LessonNotFound(f"Lesson {request.lesson_id} not found")

            recorded = store.insert_daily_attempt(
                user_id=user_id,
                quiz_id=request.lesson_id,
                completed_date=today,
                is_correct=is_correct,
                reward_earned=reward,
                now=now
            )

            if not recorded:
                logger.warning(f"Duplicate daily quiz completion for user {user_id} on {today}")
                profile = store.get_profile(user_id)
                return CompleteDailyQuizResponse(
                    success=True,
                    already_completed=True,
                    is_correct=False,
                    reward_earned=0,
                    streak_gained=False,
                    profile=reward_service.snapshot(profile, now) if profile else None
                )

            progress_service.reconcile(
                store,
                user_id=user_id,
                lesson_id=request.lesson_id,
                completed=True,
                score=request.correct_answers,
                time_increment=settings.DAILY_QUIZ_TIME_SPENT,
                expected_questions=request.total_questions,
                now=now
            )

            if is_correct:
                streak_gained = reward_service.claim_streak_day(store, user_id, now)

            profile = reward_service.apply(
                store,
                user_id=user_id,
                amount=reward,
                streak_qualified=streak_gained,
                quiz_completed=is_correct,
                now=now
            )
            profile_response = reward_service.snapshot(profile, now)

        logger.info(
            f"Daily quiz completed: user={user_id}, lesson={request.lesson_id}, "
            f"score={request.correct_answers}/{request.total_questions}, reward={reward}"
        )

        return CompleteDailyQuizResponse(
            success=True,
            already_completed=False,
            is_correct=is_correct,
            reward_earned=reward,
            streak_gained=streak_gained,
            profile=profile_response
        )

    def daily_status(
        self,
        db: Session,
        user_id: UUID,
        now: Optional[datetime] = None
    ) -> DailyQuizStatus:
        """Today's attempts and the time left until the next reset"""
        require_user(user_id)
        now = to_storage(now or utcnow())

        attempts = Store(db).attempts_on(user_id, local_date(now))

        return DailyQuizStatus(
            completed_today=bool(attempts),
            attempts=[DailyQuizAttemptResponse.model_validate(a) for a in attempts],
            time_until_reset=time_until_reset(now)
        )


# Global instance
daily_quiz_service = DailyQuizService()
