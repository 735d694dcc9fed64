"""
스토리 관련 Pydantic 스키마
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime

from quill.models.story import StoryAudience


class ContentBlock(BaseModel):
    """본문 블록 (에디터가 추가하는 필드는 그대로 보존)"""
    model_config = ConfigDict(extra="allow")

    text: str = Field(..., max_length=50000)
    type: Optional[str] = Field(None, max_length=50)
    key: Optional[str] = Field(None, max_length=50)


class StoryContent(BaseModel):
    """스토리 본문 - 첫 블록의 text가 제목"""
    model_config = ConfigDict(extra="allow")

    blocks: List[ContentBlock] = Field(..., min_length=1)


class StoryCreate(BaseModel):
    """스토리 생성 스키마"""
    model_config = ConfigDict(extra="forbid")

    content: StoryContent
    author_id: int
    audience: StoryAudience = StoryAudience.ALL
    published_at: Optional[datetime] = None
    publication_id: Optional[int] = None
    tags: Optional[List[str]] = None


class StoryUpdate(BaseModel):
    """스토리 업데이트 스키마 (author_id, unique_hash 변경 불가)"""
    model_config = ConfigDict(extra="forbid")

    content: Optional[StoryContent] = None
    audience: Optional[StoryAudience] = None
    published_at: Optional[datetime] = None
    publication_id: Optional[int] = None
    tags: Optional[List[str]] = None

    @field_validator("content", "audience", mode="before")
    @classmethod
    def reject_null(cls, v):
        # 생략은 가능하지만 명시적인 null은 불가
        if v is None:
            raise ValueError("can't be blank")
        return v


class StoryResponse(BaseModel):
    """스토리 응답 스키마"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: StoryContent
    unique_hash: str
    audience: StoryAudience
    published_at: Optional[datetime]
    author_id: int
    publication_id: Optional[int]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    # 파생 값
    title: str
    slug: str
    word_count: int
    read_time: int
    # 태그 제목 목록
    tags: List[str] = Field(default_factory=list)
