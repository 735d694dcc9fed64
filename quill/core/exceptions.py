"""
Quill 예외 클래스
"""

from typing import Dict, List, Optional


class QuillError(Exception):
    """Quill 기본 예외"""
    pass


class NotFoundError(QuillError):
    """조회 대상 없음"""

    def __init__(self, model: str, **clauses):
        self.model = model
        self.clauses = clauses
        detail = ", ".join(f"{k}={v!r}" for k, v in clauses.items())
        super().__init__(f"{model} not found ({detail})")


class MalformedContentError(QuillError, ValueError):
    """본문 블록 구조가 올바르지 않음"""
    pass


class StepFailed(QuillError):
    """트랜잭션 단계에서 필드 단위 실패를 명시적으로 보고"""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        super().__init__(f"step failed: {errors}")


class TransactionAborted(QuillError):
    """다단계 트랜잭션 중단"""

    def __init__(self, step: Optional[str], reason: Optional[str], errors: Dict[str, List[str]]):
        self.step = step
        self.reason = reason
        self.errors = errors
        super().__init__(f"transaction aborted at step '{step}' ({reason}): {errors}")
