"""
사용자 관련 서비스
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.unit_of_work import TransactionResult, UnitOfWork
from quill.models.user import User
from quill.schemas.user import UserCreate

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    """ID로 사용자 조회"""
    return await db.get(User, user_id)


async def insert_user(db: AsyncSession, attrs: Dict[str, Any]) -> TransactionResult:
    """사용자 생성 (username/email 중복은 필드 오류로 반환)"""

    async def _insert(db: AsyncSession, changes: Dict[str, Any]) -> User:
        data = UserCreate.model_validate(attrs)
        user = User(**data.model_dump())
        db.add(user)
        await db.flush()
        return user

    result = await UnitOfWork().run("user", _insert).commit(db)
    if result.ok:
        logger.info(f"사용자 생성: id={result.value.id}")
    return result


class AccountStatus:
    """멤버십 판단"""

    def is_member(self, user: User) -> bool:
        return bool(user.is_member) and user.deactivated_at is None


accounts = AccountStatus()
