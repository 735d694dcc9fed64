"""
다단계 트랜잭션 (Unit of Work)

각 단계는 이름을 가진 비동기 함수 ``step(db, changes)`` 이며, 반환값은
``changes[name]`` 에 저장되어 이후 단계에서 사용된다. ``commit`` 은 모든 단계를
하나의 트랜잭션에서 실행하고, 하나라도 실패하면 전체를 롤백한다.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quill.core.exceptions import StepFailed, TransactionAborted

logger = logging.getLogger(__name__)

Step = Callable[[AsyncSession, Dict[str, Any]], Awaitable[Any]]

_SQLITE_CONSTRAINT = re.compile(r"(UNIQUE|NOT NULL) constraint failed: \w+\.(\w+)")
_POSTGRES_UNIQUE_KEY = re.compile(r"Key \((\w+)")
_POSTGRES_NOT_NULL = re.compile(r'null value in column "(\w+)"')


@dataclass
class TransactionResult:
    """트랜잭션 결과 (성공 시 changes, 실패 시 실패 단계와 원인)"""
    ok: bool
    changes: Dict[str, Any] = field(default_factory=dict)
    failed_step: Optional[str] = None
    reason: Optional[str] = None
    errors: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def value(self) -> Any:
        """주 단계(story 등)의 결과"""
        if not self.changes:
            return None
        return list(self.changes.values())[-1]

    def unwrap(self) -> Any:
        if not self.ok:
            raise TransactionAborted(self.failed_step, self.reason, self.errors)
        return self.value


def validation_errors(exc: ValidationError) -> Dict[str, List[str]]:
    """pydantic 검증 오류를 필드별 메시지로 변환"""
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        key = ".".join(str(part) for part in err.get("loc", ())) or "base"
        errors.setdefault(key, []).append(err.get("msg", "is invalid"))
    return errors


def constraint_errors(exc: IntegrityError) -> Dict[str, List[str]]:
    """DB 제약 조건 위반을 필드별 메시지로 변환"""
    message = str(exc.orig)

    match = _SQLITE_CONSTRAINT.search(message)
    if match:
        kind, column = match.groups()
        if kind == "UNIQUE":
            return {column: ["has already been taken"]}
        return {column: ["can't be blank"]}

    match = _POSTGRES_UNIQUE_KEY.search(message)
    if match and "unique" in message.lower():
        return {match.group(1): ["has already been taken"]}

    match = _POSTGRES_NOT_NULL.search(message)
    if match:
        return {match.group(1): ["can't be blank"]}

    return {"base": ["violates a database constraint"]}


class UnitOfWork:
    """이름 붙은 단계를 모아 한 번에 커밋하는 빌더"""

    def __init__(self):
        self._steps: List[Tuple[str, Step]] = []

    def run(self, name: str, step: Step) -> "UnitOfWork":
        if any(existing == name for existing, _ in self._steps):
            raise ValueError(f"duplicate step name: {name}")
        self._steps.append((name, step))
        return self

    @property
    def step_names(self) -> List[str]:
        return [name for name, _ in self._steps]

    async def commit(self, db: AsyncSession) -> TransactionResult:
        changes: Dict[str, Any] = {}
        current: Optional[str] = None
        try:
            for current, step in self._steps:
                changes[current] = await step(db, changes)
            await db.commit()
        except ValidationError as e:
            await db.rollback()
            return self._aborted(current, "validation", validation_errors(e), changes)
        except StepFailed as e:
            await db.rollback()
            return self._aborted(current, "validation", e.errors, changes)
        except IntegrityError as e:
            await db.rollback()
            return self._aborted(current, "constraint", constraint_errors(e), changes)
        except Exception:
            await db.rollback()
            logger.exception(f"트랜잭션 단계 '{current}' 실행 중 예외 발생")
            raise

        return TransactionResult(ok=True, changes=changes)

    @staticmethod
    def _aborted(step, reason, errors, changes) -> TransactionResult:
        logger.warning(f"트랜잭션 중단: step={step} reason={reason} errors={errors}")
        # 실패한 단계 이전까지 완료된 결과만 남긴다
        completed = {k: v for k, v in changes.items() if k != step}
        return TransactionResult(
            ok=False,
            changes=completed,
            failed_step=step,
            reason=reason,
            errors=errors,
        )
