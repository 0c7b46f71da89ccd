"""
Profile model - per-user coins, streaks and counters
"""
from sqlalchemy import Column, String, Integer, Date, DateTime, Uuid
from app.database import Base
from app.utils.clock import utcnow


class Profile(Base):
    """
    Profiles table - created at signup, mutated by reward application
    """
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True)  # same as the auth user id
    username = Column(String(100))
    dough_coins = Column(Integer, nullable=False, default=0)
    streak_days = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_streak_date = Column(Date)
    total_lessons_completed = Column(Integer, nullable=False, default=0)
    total_quizzes_completed = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<Profile(id={self.id}, coins={self.dough_coins}, streak={self.streak_days})>"
