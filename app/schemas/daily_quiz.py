"""
Pydantic schemas for the daily quiz contract
"""
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from uuid import UUID
from datetime import date

from app.schemas.lesson import LessonResponse
from app.schemas.progress import ProgressResponse, ProfileResponse


class DailyQuizResponse(BaseModel):
    """Result of fetching today's quiz"""
    quiz: Optional[LessonResponse] = None
    already_completed: bool
    progress: Optional[ProgressResponse] = None


class CompleteDailyQuizRequest(BaseModel):
    """Daily quiz answers summary sent by the client"""
    user_id: Optional[UUID] = None
    lesson_id: UUID
    correct_answers: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=1)
    coins_rewarded: int = Field(..., ge=0)

    @model_validator(mode="after")
    def correct_within_total(self) -> "CompleteDailyQuizRequest":
        if self.correct_answers > self.total_questions:
            raise ValueError("correct_answers cannot exceed total_questions")
        return self


class CompleteDailyQuizResponse(BaseModel):
    """Outcome of a daily quiz completion"""
    success: bool
    already_completed: bool
    is_correct: bool
    reward_earned: int
    streak_gained: bool
    profile: Optional[ProfileResponse] = None


class DailyQuizAttemptResponse(BaseModel):
    quiz_id: UUID
    completed_date: date
    is_correct: bool
    reward_earned: int

    class Config:
        from_attributes = True


class DailyQuizStatus(BaseModel):
    """Today's daily quiz state for a user"""
    completed_today: bool
    attempts: List[DailyQuizAttemptResponse]
    time_until_reset: str
