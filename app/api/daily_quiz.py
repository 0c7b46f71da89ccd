"""
Daily quiz API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
import logging

from app.database import get_db
from app.schemas.daily_quiz import (
    CompleteDailyQuizRequest,
    CompleteDailyQuizResponse,
    DailyQuizResponse,
    DailyQuizStatus,
)
from app.services.daily_quiz_service import daily_quiz_service

router = APIRouter(prefix="/api/daily-quiz", tags=["daily-quiz"])
logger = logging.getLogger(__name__)


@router.get("", response_model=DailyQuizResponse)
async def fetch_daily_quiz(
    user_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db)
):
    """
    Get today's quiz for a user

    - Returns already_completed=true (and no quiz) once the user finished
      a quiz today
    - Otherwise picks a random lesson that has quiz questions
    """
    return daily_quiz_service.fetch_daily_quiz(db, user_id)


@router.post("/complete", response_model=CompleteDailyQuizResponse)
async def complete_daily_quiz(
    request: CompleteDailyQuizRequest,
    db: Session = Depends(get_db)
):
    """
    Complete today's quiz

    - Records the attempt (one per user per day)
    - Marks the lesson progress completed
    - Awards coins at 60% accuracy or better, and extends the streak once a day

    A repeated completion on the same day returns already_completed=true
    and awards nothing.
    """
    logger.info(f"Completing daily quiz {request.lesson_id} for user {request.user_id}")
    return daily_quiz_service.complete_daily_quiz(db, request)


@router.get("/status", response_model=DailyQuizStatus)
async def daily_quiz_status(
    user_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db)
):
    """Today's attempts and time until the daily reset"""
    return daily_quiz_service.daily_status(db, user_id)
