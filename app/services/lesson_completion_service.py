"""
Lesson completion service
Grades quiz lessons and records narrative lessons, then rewards the user
"""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidLessonContent, LessonNotFound, ProfileNotFound, require_user
from app.schemas.grading import LessonCompletionResponse, QuestionGrading
from app.schemas.lesson import LessonSubmission, PageCompletion, PagedContent, QuizContent
from app.schemas.progress import ProgressResponse
from app.services.grading_service import grading_service
from app.services.lesson_service import lesson_service
from app.services.progress_service import progress_service
from app.services.reward_service import reward_service
from app.services.store import Store
from app.utils.clock import to_storage, utcnow

logger = logging.getLogger(__name__)


class LessonCompletionService:
    """
    Service for finishing ordinary (non-daily) lessons

    Quiz lessons pay their xp_reward on every finished run; the streak
    grows at most once per day and only at 60% accuracy or better.
    Narrative lessons pay once, the first time every page has been read.
    """

    def _load(self, store: Store, lesson_id: UUID):
        lesson = store.get_lesson(lesson_id)
        if lesson is None:
            raise LessonNotFound(f"Lesson {lesson_id} not found")
        return lesson_service.to_response(lesson)

    def complete_quiz_lesson(
        self,
        db: Session,
        lesson_id: UUID,
        submission: LessonSubmission,
        now: Optional[datetime] = None
    ) -> LessonCompletionResponse:
        """
        Grade answers, reconcile progress and apply the lesson reward

        Raises:
            NotAuthenticated: no user id
            LessonNotFound: unknown lesson
            InvalidLessonContent: the lesson has no questions
            ProfileNotFound: user has no profile
            StoreUnavailable: a store call failed; nothing is committed
        """
        user_id = require_user(submission.user_id)
        now = to_storage(now or utcnow())
        store = Store(db)

        with store.transaction("complete lesson"):
            lesson = self._load(store, lesson_id)
            if not isinstance(lesson.content, QuizContent):
                raise InvalidLessonContent(f"Lesson {lesson_id} is not a quiz lesson")

            questions = lesson.content.questions
            correct, breakdown, feedback = grading_service.grade_lesson(questions, submission.answers)

            result = progress_service.reconcile(
                store,
                user_id=user_id,
                lesson_id=lesson_id,
                completed=True,
                score=correct,
                time_increment=settings.LESSON_TIME_SPENT,
                expected_questions=len(questions),
                now=now
            )

            streak_gained = False
            if reward_service.streak_qualifies(correct, len(questions)):
                streak_gained = reward_service.claim_streak_day(store, user_id, now)

            profile = reward_service.apply(
                store,
                user_id=user_id,
                amount=lesson.xp_reward,
                streak_qualified=streak_gained,
                lesson_completed=True,
                now=now
            )

            progress_response = ProgressResponse.model_validate(result.progress)
            profile_response = reward_service.snapshot(profile, now)

        accuracy = correct / len(questions)
        logger.info(
            f"Lesson completed: user={user_id}, lesson={lesson_id}, "
            f"score={correct}/{len(questions)}, coins={lesson.xp_reward}, streak_gained={streak_gained}"
        )

        return LessonCompletionResponse(
            correct_answers=correct,
            total_questions=len(questions),
            accuracy=round(accuracy * 100, 2),
            score_display=f"{correct}/{len(questions)}",
            breakdown=[QuestionGrading(**item) for item in breakdown],
            feedback=feedback,
            coins_earned=lesson.xp_reward,
            streak_gained=streak_gained,
            progress=progress_response,
            profile=profile_response
        )

    def complete_pages(
        self,
        db: Session,
        lesson_id: UUID,
        completion: PageCompletion,
        now: Optional[datetime] = None
    ) -> LessonCompletionResponse:
        """
        Record pages read in a narrative lesson

        Reading every page completes the lesson; the reward and streak are
        granted only on that first transition.
        """
        user_id = require_user(completion.user_id)
        now = to_storage(now or utcnow())
        store = Store(db)

        with store.transaction("record lesson pages"):
            lesson = self._load(store, lesson_id)
            if not isinstance(lesson.content, PagedContent):
                raise InvalidLessonContent(f"Lesson {lesson_id} is not a narrative lesson")

            total_pages = len(lesson.content.pages)
            pages_read = min(completion.pages_completed, total_pages)
            finished = pages_read == total_pages

            result = progress_service.reconcile(
                store,
                user_id=user_id,
                lesson_id=lesson_id,
                completed=finished,
                score=pages_read,
                time_increment=settings.LESSON_TIME_SPENT if finished else 0,
                expected_questions=total_pages,
                now=now
            )

            coins = 0
            streak_gained = False
            if result.newly_completed:
                coins = lesson.xp_reward
                streak_gained = reward_service.claim_streak_day(store, user_id, now)
                profile = reward_service.apply(
                    store,
                    user_id=user_id,
                    amount=coins,
                    streak_qualified=streak_gained,
                    lesson_completed=True,
                    now=now
                )
            else:
                profile = store.get_profile(user_id)
                if profile is None:
                    raise ProfileNotFound(f"No profile for user {user_id}")

            progress_response = ProgressResponse.model_validate(result.progress)
            profile_response = reward_service.snapshot(profile, now)

        logger.info(
            f"Lesson pages recorded: user={user_id}, lesson={lesson_id}, "
            f"pages={pages_read}/{total_pages}, newly_completed={result.newly_completed}"
        )

        return LessonCompletionResponse(
            correct_answers=pages_read,
            total_questions=total_pages,
            accuracy=round(pages_read / total_pages * 100, 2),
            score_display=f"{pages_read}/{total_pages}",
            breakdown=[],
            feedback="Lesson complete! Keep learning to advance your financial belt level."
            if finished else "Keep reading to finish this lesson.",
            coins_earned=coins,
            streak_gained=streak_gained,
            progress=progress_response,
            profile=profile_response
        )


# Global instance
lesson_completion_service = LessonCompletionService()
