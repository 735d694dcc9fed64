"""
퍼블리케이션 권한 서비스
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quill.models.publication import Publication, PublicationMembership, STORY_EDITOR_ROLES


async def get_publication(db: AsyncSession, publication_id: int) -> Optional[Publication]:
    """ID로 퍼블리케이션 조회"""
    return await db.get(Publication, publication_id)


async def can_edit_stories(db: AsyncSession, publication_id: int, user_id: int) -> bool:
    """owner/admin/editor 역할이면 스토리 편집 가능"""
    result = await db.execute(
        select(PublicationMembership.id).where(
            PublicationMembership.publication_id == publication_id,
            PublicationMembership.member_id == user_id,
            PublicationMembership.role.in_(STORY_EDITOR_ROLES),
        )
    )
    return result.first() is not None


class PublicationPermissions:
    """스토리 권한 판단에 주입하는 퍼블리케이션 어댑터"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def can_edit_stories(self, publication_id: int, user_id: int) -> bool:
        return await can_edit_stories(self.db, publication_id, user_id)
