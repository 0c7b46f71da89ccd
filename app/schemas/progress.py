"""
Pydantic schemas for progress, profiles and summaries
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import date, datetime


class ProgressUpdate(BaseModel):
    """Schema for reconciling one lesson attempt"""
    user_id: Optional[UUID] = None
    completed: bool = False
    score: int = Field(0, ge=0, description="Correct answers in this attempt")
    time_spent: int = Field(..., ge=0, description="Seconds to add to the running total")
    expected_questions: Optional[int] = Field(None, ge=1)


class ProgressResponse(BaseModel):
    """Merged progress record for a (user, lesson) pair"""
    user_id: UUID
    lesson_id: UUID
    completed: bool
    progress: float
    time_spent: int
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    """User profile aggregate"""
    id: UUID
    username: Optional[str] = None
    dough_coins: int
    streak_days: int
    longest_streak: int
    last_streak_date: Optional[date] = None
    total_lessons_completed: int
    total_quizzes_completed: int

    class Config:
        from_attributes = True


class CategoryProgress(BaseModel):
    """Completion within one lesson category"""
    category: str
    completed: int
    total: int
    completion_percentage: float
    belt: str


class ProgressSummary(BaseModel):
    """Per-user progress overview"""
    user_id: UUID
    completed_lessons: int
    total_lessons: int
    total_study_minutes: int
    dough_coins: int
    streak_days: int
    longest_streak: int
    categories: List[CategoryProgress]
