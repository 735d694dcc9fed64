"""
스토리 모델
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import relationship

from quill.core.database import Base, JSON, enum_values
from quill.models.tag import story_tags


class StoryAudience(str, enum.Enum):
    """스토리 공개 대상"""
    ALL = "all"
    MEMBERS = "members"


class Story(Base):
    """스토리 모델"""
    __tablename__ = "stories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # {"blocks": [{"text": ...}, ...]} - 첫 블록이 제목
    content = Column(JSON, nullable=False)
    unique_hash = Column(String(32), unique=True, index=True, nullable=False)
    audience = Column(
        Enum(StoryAudience, native_enum=False, length=16, values_callable=enum_values),
        nullable=False,
        default=StoryAudience.ALL,
    )
    # NULL이면 초안
    published_at = Column(DateTime(timezone=True), nullable=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    publication_id = Column(Integer, ForeignKey("publications.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 관계 설정
    author = relationship("User", back_populates="stories")
    publication = relationship("Publication", back_populates="stories")
    tags = relationship(
        "Tag",
        secondary=story_tags,
        back_populates="stories",
        lazy="selectin",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Story(id={self.id}, unique_hash={self.unique_hash}, author_id={self.author_id})>"
