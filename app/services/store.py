"""
Store gateway - the query contract used by the progress, daily quiz and
reward services

Every read-modify-write is expressed as a single statement evaluated by the
database (conditional upserts, arithmetic updates), so concurrent requests
cannot lose updates or double-award rewards. Any SQLAlchemy failure,
including a statement or pool timeout, surfaces as StoreUnavailable.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, case, or_, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import StoreUnavailable
from app.models import DailyQuizAttempt, Lesson, Profile, UserProgress

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class Store:
    """Repository over one request-scoped SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db
        self._after_commit = []

    def on_commit(self, callback) -> None:
        """Run callback once the current transaction has committed"""
        self._after_commit.append(callback)

    @contextmanager
    def guarded(self, operation: str):
        """Translate store failures into StoreUnavailable"""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Store call '{operation}' failed: {str(e)}")
            raise StoreUnavailable(f"Failed to {operation}") from e

    @contextmanager
    def transaction(self, operation: str):
        """
        Commit once on success, roll back on any failure

        Domain errors raised inside propagate unchanged.
        """
        try:
            with self.guarded(operation):
                yield
                self.db.commit()
        except Exception:
            self.db.rollback()
            self._after_commit.clear()
            raise

        callbacks, self._after_commit = self._after_commit, []
        for callback in callbacks:
            callback()

    def _insert(self, model):
        dialect = self.db.get_bind().dialect.name
        try:
            return _DIALECT_INSERTS[dialect](model)
        except KeyError:
            raise NotImplementedError(f"Upserts not supported on {dialect}")

    # Lessons

    def get_lesson(self, lesson_id: UUID) -> Optional[Lesson]:
        with self.guarded("load lesson"):
            return self.db.query(Lesson).filter(Lesson.id == lesson_id).first()

    def list_lessons(self, category: str = None, difficulty: str = None) -> List[Lesson]:
        with self.guarded("load lessons"):
            query = self.db.query(Lesson)
            if category:
                query = query.filter(Lesson.category == category)
            if difficulty:
                query = query.filter(Lesson.difficulty == difficulty)
            return query.order_by(Lesson.order_index, Lesson.title).all()

    def lesson_categories(self) -> List[tuple]:
        """(lesson id, category) pairs for every lesson"""
        with self.guarded("load lesson categories"):
            return self.db.query(Lesson.id, Lesson.category).all()

    def add(self, row) -> None:
        with self.guarded("save record"):
            self.db.add(row)
            self.db.flush()

    # Progress

    def get_progress(self, user_id: UUID, lesson_id: UUID) -> Optional[UserProgress]:
        with self.guarded("load progress"):
            return (
                self.db.query(UserProgress)
                .populate_existing()
                .filter(UserProgress.user_id == user_id, UserProgress.lesson_id == lesson_id)
                .first()
            )

    def list_progress(self, user_id: UUID, completed_only: bool = False) -> List[UserProgress]:
        with self.guarded("load progress"):
            query = self.db.query(UserProgress).filter(UserProgress.user_id == user_id)
            if completed_only:
                query = query.filter(UserProgress.completed.is_(True))
            return query.order_by(UserProgress.updated_at.desc()).all()

    def latest_progress_since(self, user_id: UUID, since: datetime) -> Optional[UserProgress]:
        """Most recently completed progress row with completed_at >= since"""
        with self.guarded("check today's progress"):
            return (
                self.db.query(UserProgress)
                .filter(UserProgress.user_id == user_id, UserProgress.completed_at >= since)
                .order_by(UserProgress.completed_at.desc())
                .first()
            )

    def upsert_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        completed: bool,
        progress: float,
        time_increment: int,
        now: datetime
    ) -> UserProgress:
        """
        Merge an attempt into the (user, lesson) row in one statement

        time_spent accumulates, completed only moves false -> true,
        completed_at keeps its first value.
        """
        stmt = self._insert(UserProgress).values(
            user_id=user_id,
            lesson_id=lesson_id,
            completed=completed,
            progress=progress,
            time_spent=time_increment,
            completed_at=now if completed else None,
            created_at=now,
            updated_at=now,
        )
        now_completed = or_(UserProgress.completed, stmt.excluded.completed)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "lesson_id"],
            set_={
                "time_spent": UserProgress.time_spent + stmt.excluded.time_spent,
                "completed": now_completed,
                "progress": case((now_completed, 1.0), else_=stmt.excluded.progress),
                "completed_at": case(
                    (UserProgress.completed_at.is_not(None), UserProgress.completed_at),
                    else_=stmt.excluded.completed_at
                ),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        with self.guarded("save progress"):
            self.db.execute(stmt)
        return self.get_progress(user_id, lesson_id)

    # Daily quiz attempts

    def insert_daily_attempt(
        self,
        user_id: UUID,
        quiz_id: UUID,
        completed_date: date,
        is_correct: bool,
        reward_earned: int,
        now: datetime
    ) -> bool:
        """
        Record today's attempt unless one already exists

        Returns:
            False when the user already has an attempt for completed_date
        """
        stmt = self._insert(DailyQuizAttempt).values(
            user_id=user_id,
            quiz_id=quiz_id,
            completed_date=completed_date,
            is_correct=is_correct,
            reward_earned=reward_earned,
            created_at=now,
        ).on_conflict_do_nothing()
        with self.guarded("record daily quiz attempt"):
            result = self.db.execute(stmt)
        return result.rowcount == 1

    def attempts_on(self, user_id: UUID, completed_date: date) -> List[DailyQuizAttempt]:
        with self.guarded("load daily quiz attempts"):
            return (
                self.db.query(DailyQuizAttempt)
                .filter(
                    DailyQuizAttempt.user_id == user_id,
                    DailyQuizAttempt.completed_date == completed_date
                )
                .order_by(DailyQuizAttempt.created_at)
                .all()
            )

    # Profiles

    def get_profile(self, user_id: UUID) -> Optional[Profile]:
        with self.guarded("load profile"):
            return (
                self.db.query(Profile)
                .populate_existing()
                .filter(Profile.id == user_id)
                .first()
            )

    def claim_streak_day(self, user_id: UUID, today: date) -> bool:
        """
        Reserve today's streak increment for the user

        Succeeds at most once per calendar day. A streak whose last day is
        older than yesterday has lapsed and restarts from zero.
        """
        yesterday = today - timedelta(days=1)
        stmt = (
            update(Profile)
            .where(
                Profile.id == user_id,
                or_(Profile.last_streak_date.is_(None), Profile.last_streak_date < today)
            )
            .values(
                streak_days=case(
                    (
                        and_(
                            Profile.last_streak_date.is_not(None),
                            Profile.last_streak_date < yesterday
                        ),
                        0
                    ),
                    else_=Profile.streak_days
                ),
                last_streak_date=today,
            )
            .execution_options(synchronize_session=False)
        )
        with self.guarded("claim streak day"):
            result = self.db.execute(stmt)
        return result.rowcount == 1

    def increment_profile(
        self,
        user_id: UUID,
        coins: int,
        streak: bool,
        lessons: int,
        quizzes: int,
        today: date,
        now: datetime
    ) -> int:
        """
        Apply coin, streak and counter deltas as one UPDATE

        Returns:
            Number of profile rows updated (0 when the profile is missing)
        """
        values = {
            "dough_coins": Profile.dough_coins + coins,
            "total_lessons_completed": Profile.total_lessons_completed + lessons,
            "total_quizzes_completed": Profile.total_quizzes_completed + quizzes,
            "updated_at": now,
        }
        if streak:
            values["streak_days"] = Profile.streak_days + 1
            values["longest_streak"] = case(
                (Profile.longest_streak < Profile.streak_days + 1, Profile.streak_days + 1),
                else_=Profile.longest_streak
            )
            values["last_streak_date"] = today

        stmt = (
            update(Profile)
            .where(Profile.id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self.guarded("apply reward"):
            result = self.db.execute(stmt)
        return result.rowcount
