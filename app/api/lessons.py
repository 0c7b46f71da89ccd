"""
Lesson catalogue and completion API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List, Optional
import logging

from app.database import get_db
from app.schemas.grading import LessonCompletionResponse
from app.schemas.lesson import (
    LessonCreate, LessonResponse, LessonSubmission, LessonUpdate, PageCompletion
)
from app.schemas.progress import ProgressResponse, ProgressUpdate
from app.services.lesson_completion_service import lesson_completion_service
from app.services.lesson_service import lesson_service
from app.services.progress_service import progress_service

router = APIRouter(prefix="/api/lessons", tags=["lessons"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[LessonResponse])
async def list_lessons(
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """List lessons in order, optionally filtered by category and difficulty"""
    return lesson_service.list_lessons(db, category, difficulty)


@router.get("/{lesson_id}", response_model=LessonResponse)
async def get_lesson(lesson_id: UUID, db: Session = Depends(get_db)):
    """Get a single lesson"""
    return lesson_service.get_lesson(db, lesson_id)


@router.post("", response_model=LessonResponse, status_code=201)
async def create_lesson(data: LessonCreate, db: Session = Depends(get_db)):
    """
    Author a lesson (admin)

    Content must be a quiz (`type: quiz_lesson`) or narrative pages
    (`type: paged`).
    """
    return lesson_service.create_lesson(db, data)


@router.put("/{lesson_id}", response_model=LessonResponse)
async def update_lesson(lesson_id: UUID, data: LessonUpdate, db: Session = Depends(get_db)):
    """Edit a lesson (admin)"""
    return lesson_service.update_lesson(db, lesson_id, data)


@router.post("/{lesson_id}/submit", response_model=LessonCompletionResponse)
async def submit_lesson(
    lesson_id: UUID,
    submission: LessonSubmission,
    db: Session = Depends(get_db)
):
    """
    Submit answers to a quiz lesson

    - Grades multiple choice answers
    - Marks the lesson completed and adds study time
    - Awards the lesson's coins; 60%+ accuracy extends the streak once a day
    """
    logger.info(f"Grading lesson {lesson_id} for user {submission.user_id}")
    return lesson_completion_service.complete_quiz_lesson(db, lesson_id, submission)


@router.post("/{lesson_id}/pages", response_model=LessonCompletionResponse)
async def complete_pages(
    lesson_id: UUID,
    completion: PageCompletion,
    db: Session = Depends(get_db)
):
    """Record pages read in a narrative lesson"""
    return lesson_completion_service.complete_pages(db, lesson_id, completion)


@router.put("/{lesson_id}/progress", response_model=ProgressResponse)
async def update_progress(
    lesson_id: UUID,
    update: ProgressUpdate,
    db: Session = Depends(get_db)
):
    """
    Merge one attempt into the user's lesson progress

    Time spent accumulates; completion is never reverted.
    """
    result = progress_service.record_attempt(
        db,
        user_id=update.user_id,
        lesson_id=lesson_id,
        completed=update.completed,
        score=update.score,
        time_increment=update.time_spent,
        expected_questions=update.expected_questions
    )
    return ProgressResponse.model_validate(result.progress)
