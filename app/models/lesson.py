"""
Lesson model - authored lesson content
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from app.database import Base
from app.utils.clock import utcnow
import uuid


class Lesson(Base):
    """
    Lessons table - narrative pages or quiz questions in `content`,
    discriminated by content["type"]
    """
    __tablename__ = "lessons"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(50), index=True)  # "Saving", "Credit", ...
    difficulty = Column(String(20), default="beginner")
    order_index = Column(Integer, default=0, index=True)
    content = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    xp_reward = Column(Integer, default=0)  # dough coins
    estimated_time = Column(Integer, default=300)  # seconds
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Lesson(id={self.id}, title={self.title}, category={self.category})>"
