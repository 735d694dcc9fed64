"""
스토리 파생 값 (제목, 슬러그, 단어 수, 읽는 시간)
"""

from typing import Any, Dict, List

from quill.core.exceptions import MalformedContentError
from quill.models.story import Story
from quill.utils.slugger import slugify

# 평균 읽기 속도 (분당 단어 수)
AVERAGE_WORDS_PER_MINUTE = 275


def _blocks(story: Story) -> List[Dict[str, Any]]:
    content = story.content
    blocks = content.get("blocks") if isinstance(content, dict) else None
    if not isinstance(blocks, list):
        raise MalformedContentError(f"story {story.id} content has no blocks")
    return blocks


def get_title(story: Story) -> str:
    """첫 블록의 text"""
    blocks = _blocks(story)
    if not blocks or not isinstance(blocks[0], dict) or "text" not in blocks[0]:
        raise MalformedContentError(f"story {story.id} has no title block")
    return blocks[0]["text"]


def get_slug(story: Story) -> str:
    """제목 슬러그 + '-' + unique_hash"""
    return f"{slugify(get_title(story))}-{story.unique_hash}"


def get_word_count(story: Story) -> int:
    blocks = _blocks(story)
    if not all(isinstance(block, dict) for block in blocks):
        raise MalformedContentError(f"story {story.id} has a block that is not an object")
    text = " ".join((block.get("text") or "") for block in blocks)
    return len(text.split())


def get_read_time(story: Story) -> int:
    """읽는 시간 (분, 최소 1분)"""
    return max(1, get_word_count(story) // AVERAGE_WORDS_PER_MINUTE)
