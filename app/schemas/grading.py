"""
Pydantic schemas for lesson grading and completion
"""
from pydantic import BaseModel
from typing import Any, List, Optional

from app.schemas.progress import ProgressResponse, ProfileResponse


class QuestionGrading(BaseModel):
    """Grading details for a single question"""
    question_id: str
    user_answer: Any
    correct_answer: int
    is_correct: bool
    explanation: Optional[str] = None
    feedback: str


class LessonCompletionResponse(BaseModel):
    """Response after completing a lesson"""
    correct_answers: int
    total_questions: int
    accuracy: float
    score_display: str  # "4/5"
    breakdown: List[QuestionGrading]
    feedback: str
    coins_earned: int
    streak_gained: bool
    progress: ProgressResponse
    profile: ProfileResponse
