"""
Progress summary service for per-user overviews and belt ranks
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.exceptions import ProfileNotFound, require_user
from app.services.reward_service import reward_service
from app.services.store import Store

logger = logging.getLogger(__name__)

BELTS = ["white", "yellow", "orange", "green", "blue", "brown", "black"]


def belt_for(completed: int, total: int) -> str:
    """
    Belt earned in a category

    White with nothing done, black only when every lesson is complete;
    the ranks in between split the completion ratio evenly.
    """
    if total <= 0 or completed <= 0:
        return BELTS[0]
    if completed >= total:
        return BELTS[-1]

    steps = len(BELTS) - 2
    rank = 1 + int(completed / total * steps)
    return BELTS[min(rank, len(BELTS) - 2)]


class SummaryService:
    """Service for per-user progress summaries"""

    def get_summary(
        self,
        db: Session,
        user_id: UUID,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Build a user's progress overview

        Returns:
            Dictionary matching ProgressSummary
        """
        require_user(user_id)
        store = Store(db)

        profile = store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFound(f"No profile for user {user_id}")

        lessons = store.lesson_categories()
        progress_records = store.list_progress(user_id)

        completed_ids = {p.lesson_id for p in progress_records if p.completed}
        total_seconds = sum(p.time_spent or 0 for p in progress_records)

        categories = self._category_progress(lessons, completed_ids)

        return {
            "user_id": str(user_id),
            "completed_lessons": len(completed_ids),
            "total_lessons": len(lessons),
            "total_study_minutes": round(total_seconds / 60),
            "dough_coins": profile.dough_coins,
            "streak_days": reward_service.current_streak(profile, now),
            "longest_streak": profile.longest_streak,
            "categories": categories
        }

    def _category_progress(self, lessons: List[tuple], completed_ids: set) -> List[Dict[str, Any]]:
        """Completed vs total lessons per category"""

        counts = defaultdict(lambda: {"completed": 0, "total": 0})

        for lesson_id, category in lessons:
            key = category or "General"
            counts[key]["total"] += 1
            if lesson_id in completed_ids:
                counts[key]["completed"] += 1

        categories = []
        for category, data in counts.items():
            categories.append({
                "category": category,
                "completed": data["completed"],
                "total": data["total"],
                "completion_percentage": round(data["completed"] / data["total"] * 100, 2),
                "belt": belt_for(data["completed"], data["total"])
            })

        categories.sort(key=lambda x: x["category"])

        return categories


# Global instance
summary_service = SummaryService()
