"""
DailyQuizAttempt model - one per user per calendar day
"""
from sqlalchemy import Column, Boolean, Integer, Date, DateTime, ForeignKey, UniqueConstraint, Uuid
from app.database import Base
from app.utils.clock import utcnow
import uuid


class DailyQuizAttempt(Base):
    """
    Daily quiz attempts table - insert-only

    (user_id, quiz_id, completed_date) is the declared conflict key;
    (user_id, completed_date) keeps it to one reward-bearing attempt a day.
    """
    __tablename__ = "daily_quiz_attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", "completed_date", name="uq_daily_quiz_user_quiz_date"),
        UniqueConstraint("user_id", "completed_date", name="uq_daily_quiz_user_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    quiz_id = Column(Uuid, ForeignKey("lessons.id"), nullable=False)
    completed_date = Column(Date, nullable=False)
    is_correct = Column(Boolean, nullable=False, default=False)
    reward_earned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<DailyQuizAttempt(user_id={self.user_id}, quiz_id={self.quiz_id}, date={self.completed_date})>"
