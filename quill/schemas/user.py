"""
사용자 관련 Pydantic 스키마
"""

from pydantic import BaseModel, Field, ConfigDict


class UserCreate(BaseModel):
    """사용자 생성 스키마"""
    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=2, max_length=64)
    email: str = Field(..., min_length=3, max_length=254, pattern=r"^.*@.*$")
    is_member: bool = False
