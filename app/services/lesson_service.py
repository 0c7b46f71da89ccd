"""
Lesson catalogue service
Validates lesson content once at the data-access boundary
"""
import logging
from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import InvalidLessonContent, LessonNotFound
from app.models import Lesson
from app.schemas.lesson import LessonCreate, LessonResponse, LessonUpdate, parse_lesson_content
from app.services.store import Store
from app.utils.cache import QUIZ_CANDIDATES_KEY, cache_service

logger = logging.getLogger(__name__)


class LessonService:
    """Service for reading and authoring lessons"""

    def to_response(self, lesson: Lesson) -> LessonResponse:
        """
        Convert a row into a validated lesson

        Raises:
            InvalidLessonContent: content is neither quiz nor paged narrative
        """
        try:
            content = parse_lesson_content(lesson.content)
        except ValidationError as e:
            raise InvalidLessonContent(
                f"Lesson {lesson.id} has invalid content: {e.error_count()} error(s)"
            ) from e

        return LessonResponse(
            id=lesson.id,
            title=lesson.title,
            description=lesson.description,
            category=lesson.category,
            difficulty=lesson.difficulty,
            order_index=lesson.order_index or 0,
            content=content,
            xp_reward=lesson.xp_reward or 0,
            estimated_time=lesson.estimated_time,
            created_at=lesson.created_at,
            updated_at=lesson.updated_at
        )

    def _valid_lessons(self, lessons: List[Lesson]) -> List[LessonResponse]:
        valid = []
        for lesson in lessons:
            try:
                valid.append(self.to_response(lesson))
            except InvalidLessonContent as e:
                logger.warning(f"Skipping lesson: {e.message}")
        return valid

    def list_lessons(
        self,
        db: Session,
        category: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> List[LessonResponse]:
        """Lessons ordered by order_index; invalid content is skipped"""
        return self._valid_lessons(Store(db).list_lessons(category, difficulty))

    def get_lesson(self, db: Session, lesson_id: UUID) -> LessonResponse:
        lesson = Store(db).get_lesson(lesson_id)
        if lesson is None:
            raise LessonNotFound(f"Lesson {lesson_id} not found")
        return self.to_response(lesson)

    def quiz_candidates(self, db: Session) -> List[LessonResponse]:
        """
        Lessons eligible for the daily quiz

        Cache-first; only quiz lessons with at least one question.
        """
        cached = cache_service.get(QUIZ_CANDIDATES_KEY)
        if cached is not None:
            return [LessonResponse(**item) for item in cached]

        candidates = [
            lesson for lesson in self.list_lessons(db)
            if lesson.is_quiz and lesson.question_count > 0
        ]

        cache_service.set(
            QUIZ_CANDIDATES_KEY,
            [lesson.model_dump(mode="json") for lesson in candidates],
            ttl=settings.LESSON_CACHE_TTL
        )
        return candidates

    def create_lesson(self, db: Session, data: LessonCreate) -> LessonResponse:
        store = Store(db)
        lesson = Lesson(**data.model_dump(exclude={"content"}))
        lesson.content = data.content.model_dump(mode="json")

        with store.transaction("create lesson"):
            store.add(lesson)
            store.on_commit(cache_service.invalidate_lessons)

        logger.info(f"Lesson created: {lesson.id} ({lesson.category})")
        return self.to_response(lesson)

    def update_lesson(self, db: Session, lesson_id: UUID, data: LessonUpdate) -> LessonResponse:
        store = Store(db)

        with store.transaction("update lesson"):
            lesson = store.get_lesson(lesson_id)
            if lesson is None:
                raise LessonNotFound(f"Lesson {lesson_id} not found")

            changes = data.model_dump(exclude_unset=True, exclude_none=True, exclude={"content"})
            for field, value in changes.items():
                setattr(lesson, field, value)
            if data.content is not None:
                lesson.content = data.content.model_dump(mode="json")

            store.on_commit(cache_service.invalidate_lessons)

        logger.info(f"Lesson updated: {lesson_id}")
        return self.to_response(lesson)


# Global instance
lesson_service = LessonService()
