"""
Progress reconciliation service
Merges lesson and quiz attempts into the durable (user, lesson) record
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import LessonNotFound, require_user
from app.models import UserProgress
from app.services.store import Store
from app.utils.clock import to_storage, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    progress: UserProgress
    newly_completed: bool  # this call moved the record to completed


class ProgressService:
    """
    Service for merging attempts into UserProgress

    Merge rules:
    - time_spent = existing + increment (never reset)
    - completed only transitions false -> true
    - completed_at is set on the first completion and kept afterwards
    - progress = 1.0 once completed, else score / expected question count
    """

    def calculate_progress(
        self,
        completed: bool,
        score: int,
        expected_questions: Optional[int] = None
    ) -> float:
        """
        Fraction of the lesson done by this attempt

        Partial attempts are measured against the lesson's real question
        count when the caller knows it, else the assumed count.
        """
        if completed:
            return 1.0

        denominator = expected_questions or settings.ASSUMED_QUESTION_COUNT
        return min(max(score, 0) / denominator, 1.0)

    def reconcile(
        self,
        store: Store,
        user_id: UUID,
        lesson_id: UUID,
        completed: bool,
        score: int,
        time_increment: int,
        expected_questions: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ReconcileResult:
        """
        Merge one attempt into the user's record for the lesson

        Runs inside the caller's transaction; does not commit.

        Raises:
            NotAuthenticated: no user id
            StoreUnavailable: the store call failed (not retried)
        """
        require_user(user_id)
        if time_increment < 0:
            raise ValueError("time_increment must not be negative")

        now = to_storage(now or utcnow())
        progress_value = self.calculate_progress(completed, score, expected_questions)

        progress = store.upsert_progress(
            user_id=user_id,
            lesson_id=lesson_id,
            completed=completed,
            progress=progress_value,
            time_increment=time_increment,
            now=now
        )
        # completed_at only equals `now` when this statement set it
        newly_completed = progress.completed and progress.completed_at == now

        logger.info(
            f"Progress reconciled: user={user_id}, lesson={lesson_id}, "
            f"completed={progress.completed}, progress={progress.progress:.2f}, "
            f"time_spent={progress.time_spent}s, newly_completed={newly_completed}"
        )

        return ReconcileResult(progress=progress, newly_completed=newly_completed)

    def record_attempt(
        self,
        db: Session,
        user_id: UUID,
        lesson_id: UUID,
        completed: bool,
        score: int,
        time_increment: int,
        expected_questions: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> ReconcileResult:
        """Reconcile a single attempt in its own transaction"""
        require_user(user_id)
        store = Store(db)

        with store.transaction("update progress"):
            if store.get_lesson(lesson_id) is None:
                raise LessonNotFound()
            result = self.reconcile(
                store, user_id, lesson_id, completed, score,
                time_increment, expected_questions, now
            )

        return result

    def get_progress(self, db: Session, user_id: UUID, lesson_id: UUID) -> Optional[UserProgress]:
        require_user(user_id)
        return Store(db).get_progress(user_id, lesson_id)

    def list_progress(self, db: Session, user_id: UUID) -> List[UserProgress]:
        require_user(user_id)
        return Store(db).list_progress(user_id)


# Global instance
progress_service = ProgressService()
