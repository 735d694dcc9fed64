"""
퍼블리케이션 모델 및 멤버십
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship

from quill.core.database import Base, enum_values


class PublicationRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    EDITOR = "editor"
    WRITER = "writer"


# 스토리 편집 권한이 있는 역할
STORY_EDITOR_ROLES = (PublicationRole.OWNER, PublicationRole.ADMIN, PublicationRole.EDITOR)


class Publication(Base):
    __tablename__ = "publications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 관계
    memberships = relationship("PublicationMembership", back_populates="publication", cascade="all, delete-orphan")
    stories = relationship("Story", back_populates="publication", passive_deletes=True)

    def __repr__(self):
        return f"<Publication(id={self.id}, name={self.name})>"


class PublicationMembership(Base):
    __tablename__ = "publication_memberships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    publication_id = Column(Integer, ForeignKey("publications.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(PublicationRole, native_enum=False, length=16, values_callable=enum_values), nullable=False, default=PublicationRole.WRITER)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    publication = relationship("Publication", back_populates="memberships")
    member = relationship("User", back_populates="publication_memberships")

    __table_args__ = (
        UniqueConstraint('publication_id', 'member_id', name='uq_publication_member'),
    )
