"""
UserProgress model - one row per (user, lesson)
"""
from sqlalchemy import Column, Integer, Boolean, Float, DateTime, ForeignKey, UniqueConstraint, Uuid
from app.database import Base
from app.utils.clock import utcnow
import uuid


class UserProgress(Base):
    """
    User progress table - merged across attempts, never replaced

    time_spent only grows, completed never reverts, completed_at is set once.
    """
    __tablename__ = "user_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "lesson_id", name="uq_user_progress_user_lesson"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    lesson_id = Column(Uuid, ForeignKey("lessons.id"), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    progress = Column(Float, nullable=False, default=0.0)  # 0.0 to 1.0
    time_spent = Column(Integer, nullable=False, default=0)  # seconds
    completed_at = Column(DateTime, index=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<UserProgress(user_id={self.user_id}, lesson_id={self.lesson_id}, completed={self.completed})>"
