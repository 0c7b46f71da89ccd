"""
Pydantic schemas for lessons and their polymorphic content
"""
from pydantic import BaseModel, Field, TypeAdapter, model_validator
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID
from datetime import datetime


class Question(BaseModel):
    """Multiple choice question inside a quiz lesson"""
    id: str
    question: str
    options: List[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    explanation: Optional[str] = None
    difficulty: str = Field("easy", pattern="^(easy|medium|hard)$")
    category: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_camel_case_answer(cls, data: Any) -> Any:
        if isinstance(data, dict) and "correct_answer" not in data and "correctAnswer" in data:
            data = {**data, "correct_answer": data["correctAnswer"]}
        return data

    @model_validator(mode="after")
    def answer_within_options(self) -> "Question":
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} out of range for {len(self.options)} options"
            )
        return self


class Page(BaseModel):
    """One page of narrative lesson content"""
    title: str
    content: str
    highlight: Optional[str] = None


class QuizContent(BaseModel):
    type: Literal["quiz_lesson"] = "quiz_lesson"
    questions: List[Question] = Field(..., min_length=1)


class PagedContent(BaseModel):
    type: Literal["paged"] = "paged"
    pages: List[Page] = Field(..., min_length=1)


LessonContent = Annotated[Union[QuizContent, PagedContent], Field(discriminator="type")]

_content_adapter = TypeAdapter(LessonContent)


def parse_lesson_content(raw: Any) -> Union[QuizContent, PagedContent]:
    """
    Validate stored content into the tagged union

    Rows written before the `type` tag existed are classified by shape:
    a questions list is a quiz, a pages list is narrative.

    Raises:
        pydantic.ValidationError: content fits neither variant
    """
    if isinstance(raw, dict) and "type" not in raw:
        if raw.get("questions"):
            raw = {**raw, "type": "quiz_lesson"}
        elif "pages" in raw:
            raw = {**raw, "type": "paged"}
    return _content_adapter.validate_python(raw)


class LessonCreate(BaseModel):
    """Schema for authoring a lesson"""
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    category: str = Field(..., max_length=50)
    difficulty: str = Field("beginner", pattern="^(beginner|intermediate|advanced)$")
    order_index: int = Field(0, ge=0)
    content: LessonContent
    xp_reward: int = Field(10, ge=0)
    estimated_time: int = Field(300, ge=0)


class LessonUpdate(BaseModel):
    """Partial lesson edit (admin)"""
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=50)
    difficulty: Optional[str] = Field(None, pattern="^(beginner|intermediate|advanced)$")
    order_index: Optional[int] = Field(None, ge=0)
    content: Optional[LessonContent] = None
    xp_reward: Optional[int] = Field(None, ge=0)
    estimated_time: Optional[int] = Field(None, ge=0)


class LessonResponse(BaseModel):
    """Lesson with validated content"""
    id: UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    order_index: int = 0
    content: LessonContent
    xp_reward: int = 0
    estimated_time: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def is_quiz(self) -> bool:
        return isinstance(self.content, QuizContent)

    @property
    def question_count(self) -> int:
        return len(self.content.questions) if self.is_quiz else 0


class LessonSubmission(BaseModel):
    """Answers to a quiz lesson"""
    user_id: Optional[UUID] = None
    answers: Dict[str, Any]  # {question_id: option index or letter}


class PageCompletion(BaseModel):
    """Narrative lesson pages the user has read"""
    user_id: Optional[UUID] = None
    pages_completed: int = Field(..., ge=0)
