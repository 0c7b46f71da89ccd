"""
User progress, profile and summary API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import List
import logging

from app.database import get_db
from app.schemas.progress import ProfileResponse, ProgressResponse, ProgressSummary
from app.services.progress_service import progress_service
from app.services.reward_service import reward_service
from app.services.summary_service import summary_service

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/{user_id}/profile", response_model=ProfileResponse)
async def get_profile(user_id: UUID, db: Session = Depends(get_db)):
    """Coins, streaks and completion counters"""
    return reward_service.get_profile(db, user_id)


@router.get("/{user_id}/progress", response_model=List[ProgressResponse])
async def list_progress(user_id: UUID, db: Session = Depends(get_db)):
    """All lesson progress records for a user, most recent first"""
    return [ProgressResponse.model_validate(p) for p in progress_service.list_progress(db, user_id)]


@router.get("/{user_id}/summary", response_model=ProgressSummary)
async def get_summary(user_id: UUID, db: Session = Depends(get_db)):
    """
    Progress overview

    Returns:
    - Completed vs total lessons and study time
    - Coins and streaks
    - Per-category progress with belt rank
    """
    logger.info(f"Building progress summary for user {user_id}")
    return ProgressSummary(**summary_service.get_summary(db, user_id))
