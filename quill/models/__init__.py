"""
모델 패키지
"""

from .user import User
from .publication import Publication, PublicationMembership, PublicationRole
from .tag import Tag, story_tags
from .story import Story, StoryAudience

__all__ = [
    "User",
    "Publication",
    "PublicationMembership",
    "PublicationRole",
    "Tag",
    "story_tags",
    "Story",
    "StoryAudience",
]
