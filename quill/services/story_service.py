"""
스토리 서비스 - 조회, 생성/수정/삭제
"""

import logging
import secrets
from typing import Any, Dict, List, Optional

from sqlalchemy import func, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.config import settings
from quill.core.exceptions import NotFoundError, StepFailed
from quill.core.unit_of_work import TransactionResult, UnitOfWork
from quill.models.publication import Publication
from quill.models.story import Story
from quill.models.tag import Tag
from quill.models.user import User
from quill.schemas.story import StoryCreate, StoryResponse, StoryUpdate
from quill.services import story_metrics
from quill.services.tag_service import insert_and_get_all_tags

logger = logging.getLogger(__name__)


async def get_story(db: AsyncSession, story_id: int) -> Optional[Story]:
    """ID로 스토리 조회"""
    return await get_story_by(db, id=story_id)


async def get_story_or_raise(db: AsyncSession, story_id: int) -> Story:
    """ID로 스토리 조회 (없으면 NotFoundError)"""
    story = await get_story(db, story_id)
    if story is None:
        raise NotFoundError("Story", id=story_id)
    return story


async def get_story_by_slug(db: AsyncSession, slug: str) -> Optional[Story]:
    """슬러그 마지막 '-' 뒤의 unique_hash로 조회 (앞부분은 무시)"""
    unique_hash = slug.split("-")[-1]
    return await get_story_by_unique_hash(db, unique_hash)


async def get_story_by_unique_hash(db: AsyncSession, unique_hash: str) -> Optional[Story]:
    return await get_story_by(db, unique_hash=unique_hash)


async def get_story_by(db: AsyncSession, **clauses) -> Optional[Story]:
    """컬럼 동등 조건으로 스토리 조회"""
    query = select(Story).where(*(getattr(Story, column) == value for column, value in clauses.items()))
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_story_count(db: AsyncSession) -> int:
    """비활성화되지 않은 작성자의 스토리 수 (공개 대상/발행일은 따지지 않음)"""
    result = await db.execute(
        select(func.count(Story.id))
        .join(User, User.id == Story.author_id)
        .where(User.deactivated_at.is_(None))
    )
    return result.scalar_one()


async def get_author(db: AsyncSession, story: Story) -> User:
    return await db.get(User, story.author_id)


async def get_tags(db: AsyncSession, story: Story) -> List[Tag]:
    await db.refresh(story, attribute_names=["tags"])
    return list(story.tags)


async def get_publication(db: AsyncSession, story: Story) -> Optional[Publication]:
    if story.publication_id is None:
        return None
    return await db.get(Publication, story.publication_id)


def generate_unique_hash() -> str:
    return secrets.token_hex(settings.STORY_UNIQUE_HASH_BYTES)


def _maybe_insert_tags(uow: UnitOfWork, attrs: Dict[str, Any]) -> UnitOfWork:
    if attrs.get("tags") is None:
        return uow

    async def _insert_tags(db: AsyncSession, changes: Dict[str, Any]) -> List[Tag]:
        if isinstance(attrs["tags"], str):
            raise StepFailed({"tags": ["must be a list of titles"]})
        return await insert_and_get_all_tags(db, attrs["tags"])

    return uow.run("tags", _insert_tags)


async def insert_story(db: AsyncSession, attrs: Dict[str, Any]) -> TransactionResult:
    """스토리 생성 (태그 생성과 스토리 저장을 하나의 트랜잭션으로)"""

    async def _insert(db: AsyncSession, changes: Dict[str, Any]) -> Story:
        data = StoryCreate.model_validate(attrs)
        story = Story(
            content=data.content.model_dump(exclude_none=True),
            unique_hash=generate_unique_hash(),
            audience=data.audience,
            published_at=data.published_at,
            author_id=data.author_id,
            publication_id=data.publication_id,
            tags=changes.get("tags", []),
        )
        db.add(story)
        await db.flush()
        await db.refresh(story)
        return story

    uow = _maybe_insert_tags(UnitOfWork(), attrs)
    result = await uow.run("story", _insert).commit(db)
    if result.ok:
        logger.info(f"스토리 생성: id={result.value.id} unique_hash={result.value.unique_hash}")
    return result


async def update_story(db: AsyncSession, story: Story, attrs: Dict[str, Any]) -> TransactionResult:
    """스토리 수정 (작성자/unique_hash는 변경 불가)"""
    # 롤백으로 만료된 인스턴스도 lazy load 없이 id를 얻는다
    story_id = inspect(story).identity[0]

    async def _update(db: AsyncSession, changes: Dict[str, Any]) -> Story:
        data = StoryUpdate.model_validate(attrs)
        if "tags" in changes:
            await db.refresh(story, attribute_names=["tags"])
            story.tags = changes["tags"]

        updates = data.model_dump(exclude_unset=True, exclude={"tags"})
        if "content" in updates:
            updates["content"] = data.content.model_dump(exclude_none=True)
        for column, value in updates.items():
            setattr(story, column, value)

        await db.flush()
        await db.refresh(story)
        return story

    uow = _maybe_insert_tags(UnitOfWork(), attrs)
    result = await uow.run("story", _update).commit(db)
    if result.ok:
        logger.info(f"스토리 수정: id={story_id}")
    return result


async def remove_from_publication(db: AsyncSession, story: Story) -> TransactionResult:
    """퍼블리케이션에서 스토리 제거"""
    return await update_story(db, story, {"publication_id": None})


async def delete_story(db: AsyncSession, story: Story) -> Story:
    """스토리 삭제 (story_tags 행은 DB cascade로 삭제)"""
    story_id = inspect(story).identity[0]
    await db.delete(story)
    await db.commit()
    logger.info(f"스토리 삭제: id={story_id}")
    return story


def serialize_story(story: Story) -> StoryResponse:
    """파생 값과 태그 제목을 포함한 응답 스키마로 변환"""
    return StoryResponse(
        id=story.id,
        content=story.content,
        unique_hash=story.unique_hash,
        audience=story.audience,
        published_at=story.published_at,
        author_id=story.author_id,
        publication_id=story.publication_id,
        created_at=story.created_at,
        updated_at=story.updated_at,
        title=story_metrics.get_title(story),
        slug=story_metrics.get_slug(story),
        word_count=story_metrics.get_word_count(story),
        read_time=story_metrics.get_read_time(story),
        tags=[tag.title for tag in (story.tags or [])],
    )
