"""
스키마 패키지
"""

from .story import ContentBlock, StoryContent, StoryCreate, StoryUpdate, StoryResponse
from .tag import TagCreate
from .user import UserCreate

__all__ = [
    "ContentBlock",
    "StoryContent",
    "StoryCreate",
    "StoryUpdate",
    "StoryResponse",
    "TagCreate",
    "UserCreate",
]
