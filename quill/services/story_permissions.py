"""
스토리 공개 여부 및 권한 판단

판단 순서: 작성자 → 퍼블리케이션 편집 권한 → 공개 대상(members) → 전체 공개.
"""

from datetime import datetime, timezone
from typing import Optional, Protocol

from quill.models.story import Story, StoryAudience
from quill.models.user import User
from quill.services.user_service import accounts as default_accounts


class PublicationAuthority(Protocol):
    async def can_edit_stories(self, publication_id: int, user_id: int) -> bool:
        ...


class MembershipAuthority(Protocol):
    def is_member(self, user: User) -> bool:
        ...


def _as_utc(value: datetime) -> datetime:
    # SQLite는 timezone 정보 없이 돌려준다
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def has_been_published(story: Story, now: Optional[datetime] = None) -> bool:
    if story.published_at is None:
        return False
    now = _as_utc(now) if now else datetime.now(timezone.utc)
    return _as_utc(story.published_at) <= now


def is_public(story: Optional[Story]) -> bool:
    if story is None:
        return False
    return story.audience == StoryAudience.ALL and has_been_published(story)


def _is_author(story: Story, user: Optional[User]) -> bool:
    return user is not None and story.author_id == user.id


async def _can_edit_in_publication(story: Story, user: Optional[User], publications: PublicationAuthority) -> bool:
    if user is None or story.publication_id is None:
        return False
    return await publications.can_edit_stories(story.publication_id, user.id)


async def can_see_story(
    story: Story,
    user: Optional[User],
    publications: PublicationAuthority,
    accounts: MembershipAuthority = default_accounts,
) -> bool:
    """사용자가 스토리를 볼 수 있는지"""
    if _is_author(story, user):
        return True

    # 퍼블리케이션 스토리는 편집 권한이 곧 열람 권한
    if user is not None and story.publication_id is not None:
        return await publications.can_edit_stories(story.publication_id, user.id)

    if story.audience == StoryAudience.MEMBERS:
        if user is None:
            return False
        return accounts.is_member(user) and has_been_published(story)

    return is_public(story)


async def can_update_story(story: Story, user: Optional[User], publications: PublicationAuthority) -> bool:
    """작성자 또는 퍼블리케이션 편집자만 수정 가능"""
    if _is_author(story, user):
        return True
    return await _can_edit_in_publication(story, user, publications)


def can_delete_story(story: Story, user: Optional[User]) -> bool:
    """작성자만 삭제 가능"""
    return _is_author(story, user)
