"""
Database models package
"""
from app.models.lesson import Lesson
from app.models.user_progress import UserProgress
from app.models.daily_quiz_attempt import DailyQuizAttempt
from app.models.profile import Profile

__all__ = ["Lesson", "UserProgress", "DailyQuizAttempt", "Profile"]
