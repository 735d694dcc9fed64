"""
태그 서비스
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.exceptions import StepFailed
from quill.models.tag import Tag
from quill.schemas.tag import TagCreate

logger = logging.getLogger(__name__)


async def get_tag_by_title(db: AsyncSession, title: str) -> Optional[Tag]:
    """제목으로 태그 조회"""
    result = await db.execute(select(Tag).where(Tag.title == title))
    return result.scalar_one_or_none()


async def _get_or_insert_tag(db: AsyncSession, title: str) -> Tag:
    tag = await get_tag_by_title(db, title)
    if tag is not None:
        return tag

    try:
        async with db.begin_nested():
            tag = Tag(title=title)
            db.add(tag)
        return tag
    except IntegrityError:
        # 다른 요청이 먼저 생성한 경우 다시 조회
        logger.warning(f"태그 동시 생성 충돌, 재조회: {title}")
        tag = await get_tag_by_title(db, title)
        if tag is None:
            raise StepFailed({"tags": [f"could not insert tag {title!r}"]})
        return tag


async def insert_and_get_all_tags(db: AsyncSession, titles: Iterable[str]) -> List[Tag]:
    """태그가 없으면 생성하고 전체를 반환 (커밋은 호출자 트랜잭션에서)"""
    unique_titles: List[str] = []
    for raw in titles:
        title = TagCreate(title=(raw or "").strip()).title
        if title not in unique_titles:
            unique_titles.append(title)

    return [await _get_or_insert_tag(db, title) for title in unique_titles]
