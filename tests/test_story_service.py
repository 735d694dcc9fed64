from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select

from quill.core.exceptions import NotFoundError, TransactionAborted
from quill.models import Publication, Story, StoryAudience, Tag, User, story_tags
from quill.services import story_service, tag_service
from quill.services.story_metrics import get_slug
from quill.services.user_service import insert_user

PAST = datetime.now(UTC) - timedelta(days=1)


def _content(*texts: str) -> dict:
    return {"blocks": [{"text": text} for text in texts]}


async def _insert(db, author: User, **attrs) -> Story:
    attrs.setdefault("content", _content("Hello World"))
    result = await story_service.insert_story(db, {"author_id": author.id, **attrs})
    return result.unwrap()


async def _tag_count(db, title: str | None = None) -> int:
    query = select(func.count(Tag.id))
    if title is not None:
        query = query.where(Tag.title == title)
    return (await db.execute(query)).scalar_one()


async def test_insert_assigns_unique_hash_and_defaults(db, author) -> None:
    story = await _insert(db, author)

    assert story.id is not None
    assert len(story.unique_hash) == 12
    assert story.audience == StoryAudience.ALL
    assert story.published_at is None
    assert story.tags == []


async def test_lookups_by_id_slug_and_hash(db, author) -> None:
    story = await _insert(db, author)
    slug = get_slug(story)

    assert (await story_service.get_story(db, story.id)).id == story.id
    assert (await story_service.get_story_or_raise(db, story.id)).id == story.id
    assert (await story_service.get_story_by_slug(db, slug)).id == story.id
    assert (await story_service.get_story_by_unique_hash(db, story.unique_hash)).id == story.id
    assert (await story_service.get_story_by(db, unique_hash=story.unique_hash)).id == story.id


async def test_slug_prefix_is_ignored(db, author) -> None:
    story = await _insert(db, author)

    found = await story_service.get_story_by_slug(db, f"something-else-entirely-{story.unique_hash}")

    assert found.id == story.id


async def test_missing_story_lookups(db) -> None:
    assert await story_service.get_story(db, 404) is None
    assert await story_service.get_story_by_slug(db, "nothing-here-deadbeef") is None
    with pytest.raises(NotFoundError):
        await story_service.get_story_or_raise(db, 404)


async def test_insert_with_existing_tag_reuses_row(db, author) -> None:
    await tag_service.insert_and_get_all_tags(db, ["x"])
    await db.commit()

    story = await _insert(db, author, tags=["x", "y"])

    assert sorted(tag.title for tag in story.tags) == ["x", "y"]
    assert await _tag_count(db, "x") == 1
    assert await _tag_count(db) == 2


async def test_duplicate_tag_titles_collapse(db, author) -> None:
    story = await _insert(db, author, tags=["x", " x ", "y"])

    assert sorted(tag.title for tag in story.tags) == ["x", "y"]


async def test_insert_validation_failure_rolls_back_new_tags(db, session_factory, author) -> None:
    result = await story_service.insert_story(
        db, {"author_id": author.id, "content": {"blocks": []}, "tags": ["orphan"]}
    )

    assert result.ok is False
    assert result.failed_step == "story"
    assert result.reason == "validation"
    assert "content.blocks" in result.errors
    assert "tags" in result.changes
    async with session_factory() as fresh:
        assert await tag_service.get_tag_by_title(fresh, "orphan") is None


async def test_insert_rejects_unknown_audience(db, author) -> None:
    result = await story_service.insert_story(
        db, {"author_id": author.id, "content": _content("Title"), "audience": "friends"}
    )

    assert result.ok is False
    assert "audience" in result.errors
    with pytest.raises(TransactionAborted) as excinfo:
        result.unwrap()
    assert excinfo.value.step == "story"


async def test_insert_with_unknown_author_is_a_constraint_violation(db) -> None:
    result = await story_service.insert_story(db, {"author_id": 9999, "content": _content("Title")})

    assert result.ok is False
    assert result.failed_step == "story"
    assert result.reason == "constraint"
    assert result.errors == {"base": ["violates a database constraint"]}


async def test_insert_rejects_tags_given_as_string(db, author) -> None:
    result = await story_service.insert_story(
        db, {"author_id": author.id, "content": _content("Title"), "tags": "x,y"}
    )

    assert result.failed_step == "tags"
    assert result.errors == {"tags": ["must be a list of titles"]}


async def test_update_changes_content_and_tags_but_keeps_hash(db, author) -> None:
    story = await _insert(db, author, tags=["x"])
    unique_hash = story.unique_hash

    result = await story_service.update_story(
        db,
        story,
        {"content": _content("Brand New Title", "body"), "tags": ["y", "z"], "audience": "members"},
    )
    updated = result.unwrap()

    assert updated.unique_hash == unique_hash
    assert get_slug(updated) == f"brand-new-title-{unique_hash}"
    assert updated.audience == StoryAudience.MEMBERS
    assert sorted(tag.title for tag in updated.tags) == ["y", "z"]
    assert (await story_service.get_story_by_slug(db, get_slug(updated))).id == story.id


async def test_update_without_tags_keeps_existing_tags(db, author) -> None:
    story = await _insert(db, author, tags=["x"])

    updated = (await story_service.update_story(db, story, {"published_at": PAST})).unwrap()

    assert [tag.title for tag in updated.tags] == ["x"]
    assert updated.published_at is not None


@pytest.mark.parametrize("field", ["author_id", "unique_hash"])
async def test_update_rejects_immutable_fields(db, author, field) -> None:
    story = await _insert(db, author)

    result = await story_service.update_story(db, story, {field: "changed"})

    assert result.ok is False
    assert result.reason == "validation"
    assert field in result.errors


@pytest.mark.parametrize("field", ["content", "audience"])
async def test_update_rejects_null_content_and_audience(db, session_factory, author, field) -> None:
    story = await _insert(db, author)
    story_id = story.id

    result = await story_service.update_story(db, story, {field: None})

    assert result.ok is False
    assert result.failed_step == "story"
    assert result.reason == "validation"
    assert field in result.errors
    async with session_factory() as fresh:
        reloaded = await story_service.get_story(fresh, story_id)
        assert reloaded.content == _content("Hello World")
        assert reloaded.audience == StoryAudience.ALL


async def test_update_can_be_retried_after_a_failed_attempt(db, author) -> None:
    story = await _insert(db, author)

    failed = await story_service.update_story(db, story, {"audience": None})
    retried = await story_service.update_story(db, story, {"audience": "members"})

    assert failed.ok is False
    assert retried.unwrap().audience == StoryAudience.MEMBERS


async def test_failed_tag_resolution_leaves_story_unchanged(db, session_factory, author) -> None:
    story = await _insert(db, author, tags=["x"])
    story_id = story.id

    result = await story_service.update_story(
        db, story, {"content": _content("Changed"), "tags": ["ok", "t" * 65]}
    )

    assert result.ok is False
    assert result.failed_step == "tags"
    assert result.reason == "validation"
    async with session_factory() as fresh:
        reloaded = await story_service.get_story(fresh, story_id)
        assert reloaded.content == _content("Hello World")
        assert [tag.title for tag in reloaded.tags] == ["x"]
        assert await tag_service.get_tag_by_title(fresh, "ok") is None


async def test_remove_from_publication(db, author) -> None:
    publication = Publication(name="The Daily")
    db.add(publication)
    await db.commit()
    story = await _insert(db, author, publication_id=publication.id)

    assert (await story_service.get_publication(db, story)).id == publication.id

    updated = (await story_service.remove_from_publication(db, story)).unwrap()

    assert updated.publication_id is None
    assert await story_service.get_publication(db, updated) is None


async def test_delete_removes_tag_links_but_keeps_tags(db, author) -> None:
    story = await _insert(db, author, tags=["x"])
    story_id = story.id

    await story_service.delete_story(db, story)

    assert await story_service.get_story(db, story_id) is None
    assert await _tag_count(db, "x") == 1
    links = (await db.execute(select(func.count()).select_from(story_tags))).scalar_one()
    assert links == 0


async def test_story_count_ignores_deactivated_authors_only(db, author) -> None:
    other = (await insert_user(db, {"username": "carol", "email": "carol@example.com"})).unwrap()
    await _insert(db, author)
    await _insert(db, author, audience="members")
    await _insert(db, other, published_at=PAST)

    assert await story_service.get_story_count(db) == 3

    other.deactivated_at = datetime.now(UTC)
    await db.commit()

    assert await story_service.get_story_count(db) == 2


async def test_author_and_tags_accessors(db, author) -> None:
    story = await _insert(db, author, tags=["x"])

    assert (await story_service.get_author(db, story)).username == "alice"
    assert [tag.title for tag in await story_service.get_tags(db, story)] == ["x"]


async def test_serialize_story_includes_derived_fields(db, author) -> None:
    story = await _insert(db, author, tags=["x"])

    response = story_service.serialize_story(story)

    assert response.title == "Hello World"
    assert response.slug == f"hello-world-{story.unique_hash}"
    assert response.word_count == 2
    assert response.read_time == 1
    assert response.tags == ["x"]
