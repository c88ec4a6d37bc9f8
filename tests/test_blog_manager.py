"""
Tests for the blog repository (all writes to the blogs collection).
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from blog_platform.managers.blog_manager import BlogRepository
from blog_platform.models.blog_models import CreateBlogRequest, UpdateBlogRequest
from blog_platform.services.image_upload_service import ImageUploadError, UploadedImage
from blog_platform.utils.errors import BlogForbiddenError, BlogNotFoundError, BlogValidationError

BLOG_ID = ObjectId()
AUTHOR_ID = ObjectId()
READER_ID = ObjectId()


def _cursor(docs):
    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.fixture
def collection():
    coll = MagicMock()
    coll.find_one = AsyncMock()
    coll.find_one_and_update = AsyncMock()
    coll.insert_one = AsyncMock(return_value=MagicMock(inserted_id=BLOG_ID))
    coll.update_one = AsyncMock()
    coll.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    coll.find = MagicMock(return_value=_cursor([]))
    coll.aggregate = MagicMock(return_value=_cursor([{"_id": BLOG_ID, "title": "Hello", "comments": []}]))
    return coll


@pytest.fixture
def mock_db_manager(collection):
    with patch("blog_platform.managers.blog_manager.db_manager") as mock:
        mock.get_collection.return_value = collection
        yield mock


@pytest.fixture
def uploader():
    mock = MagicMock()
    mock.upload_image = AsyncMock(return_value=UploadedImage(url="https://img.example/new.png", public_id="blogs/new"))
    mock.delete_image = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def repository(mock_db_manager, uploader):
    return BlogRepository(uploader=uploader)


@pytest.fixture
def image_file():
    upload = MagicMock(filename="cover.png", content_type="image/png")
    upload.read = AsyncMock(return_value=b"\x89PNG")
    return upload


@pytest.fixture
def stored_blog():
    return {
        "_id": BLOG_ID,
        "title": "Hello",
        "slug": "hello",
        "content": "old content",
        "author": AUTHOR_ID,
        "status": "draft",
        "publishedAt": None,
        "featuredImage": "https://img.example/old.png",
        "featuredImagePublicId": "blogs/old",
        "isCommentEnabled": True,
        "comments": [],
    }


# --- create ---


@pytest.mark.asyncio
async def test_create_requires_title_and_content(repository, uploader, collection, image_file):
    with pytest.raises(BlogValidationError, match="Title and content are required"):
        await repository.create(CreateBlogRequest(title="Hello"), AUTHOR_ID, image_file)

    uploader.upload_image.assert_not_awaited()
    collection.insert_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_rejects_long_title_before_upload(repository, uploader, collection, image_file):
    with pytest.raises(BlogValidationError, match="200"):
        await repository.create(CreateBlogRequest(title="x" * 201, content="body"), AUTHOR_ID, image_file)

    uploader.upload_image.assert_not_awaited()
    collection.insert_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_rejects_long_meta_description(repository):
    with pytest.raises(BlogValidationError, match="160"):
        await repository.create(
            CreateBlogRequest(title="Hello", content="body", meta_description="m" * 161), AUTHOR_ID
        )


@pytest.mark.asyncio
async def test_create_persists_draft_with_derived_fields(repository, collection, image_file):
    payload = CreateBlogRequest(
        title="Hello World", content="word " * 450, categories="Tech, python, tech", tags=" API ,, web"
    )

    result = await repository.create(payload, AUTHOR_ID, image_file)

    document = collection.insert_one.await_args.args[0]
    assert document["slug"] == "hello-world"
    assert document["status"] == "draft"
    assert document["author"] == AUTHOR_ID
    assert document["readingTime"] == 3
    assert document["categories"] == ["tech", "python"]
    assert document["tags"] == ["api", "web"]
    assert document["keywords"] == []
    assert document["isCommentEnabled"] is True
    assert document["publishedAt"] is None
    assert document["viewCount"] == 0
    assert document["likes"] == [] and document["comments"] == []
    assert document["featuredImage"] == "https://img.example/new.png"
    assert document["featuredImagePublicId"] == "blogs/new"
    assert document["createdAt"] == document["updatedAt"]
    assert result["_id"] == BLOG_ID


@pytest.mark.asyncio
async def test_create_without_image_stores_empty_url(repository, collection, uploader):
    await repository.create(CreateBlogRequest(title="Hello", content="body", is_comment_enabled=False), AUTHOR_ID)

    document = collection.insert_one.await_args.args[0]
    assert document["featuredImage"] == ""
    assert document["isCommentEnabled"] is False
    uploader.upload_image.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_suffixes_colliding_slug(repository, collection):
    collection.find.return_value = _cursor([{"slug": "hello-world"}, {"slug": "hello-world-2"}])

    await repository.create(CreateBlogRequest(title="Hello World", content="body"), AUTHOR_ID)

    assert collection.insert_one.await_args.args[0]["slug"] == "hello-world-3"


@pytest.mark.asyncio
async def test_create_upload_failure_is_validation_error(repository, uploader, collection, image_file):
    uploader.upload_image.side_effect = ImageUploadError("boom")

    with pytest.raises(BlogValidationError, match="Error while uploading featured image"):
        await repository.create(CreateBlogRequest(title="Hello", content="body"), AUTHOR_ID, image_file)

    collection.insert_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_removes_uploaded_image_when_insert_fails(repository, uploader, collection, image_file):
    collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")

    with pytest.raises(DuplicateKeyError):
        await repository.create(CreateBlogRequest(title="Hello", content="body"), AUTHOR_ID, image_file)

    assert collection.insert_one.await_count == 3
    uploader.delete_image.assert_awaited_once_with("blogs/new")


@pytest.mark.asyncio
async def test_create_insert_failure_without_image_skips_removal(repository, uploader, collection):
    collection.insert_one.side_effect = RuntimeError("connection reset")

    with pytest.raises(RuntimeError):
        await repository.create(CreateBlogRequest(title="Hello", content="body"), AUTHOR_ID)

    uploader.delete_image.assert_not_awaited()


# --- update / delete ---


@pytest.mark.asyncio
async def test_update_missing_blog(repository, collection):
    collection.find_one.return_value = None

    with pytest.raises(BlogNotFoundError):
        await repository.update(str(BLOG_ID), UpdateBlogRequest(title="New"), AUTHOR_ID)


@pytest.mark.asyncio
async def test_update_malformed_id_is_not_found(repository, collection):
    with pytest.raises(BlogNotFoundError):
        await repository.update("not-an-id", UpdateBlogRequest(title="New"), AUTHOR_ID)

    collection.find_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_by_non_author_is_forbidden(repository, collection, stored_blog):
    collection.find_one.return_value = stored_blog

    with pytest.raises(BlogForbiddenError):
        await repository.update(str(BLOG_ID), UpdateBlogRequest(title="New"), READER_ID)

    collection.find_one_and_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_applies_only_truthy_fields(repository, collection, stored_blog):
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = stored_blog

    await repository.update(
        str(BLOG_ID),
        UpdateBlogRequest(title="", content="brand new content", tags="", is_comment_enabled=False),
        AUTHOR_ID,
    )

    changes = collection.find_one_and_update.await_args.args[1]["$set"]
    assert "title" not in changes
    assert "tags" not in changes
    assert "slug" not in changes
    assert changes["content"] == "brand new content"
    assert changes["readingTime"] == 1
    assert changes["isCommentEnabled"] is False
    assert "updatedAt" in changes


@pytest.mark.asyncio
async def test_update_rechecks_length_caps(repository, collection, stored_blog):
    collection.find_one.return_value = stored_blog

    with pytest.raises(BlogValidationError, match="300"):
        await repository.update(str(BLOG_ID), UpdateBlogRequest(excerpt="e" * 301), AUTHOR_ID)


@pytest.mark.asyncio
async def test_update_replaces_image_and_removes_old_one(repository, collection, uploader, stored_blog, image_file):
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = stored_blog

    await repository.update(str(BLOG_ID), UpdateBlogRequest(), AUTHOR_ID, image_file)

    changes = collection.find_one_and_update.await_args.args[1]["$set"]
    assert changes["featuredImage"] == "https://img.example/new.png"
    assert changes["featuredImagePublicId"] == "blogs/new"
    uploader.delete_image.assert_awaited_once_with("blogs/old")


@pytest.mark.asyncio
async def test_update_upload_failure_keeps_previous_image(repository, collection, uploader, stored_blog, image_file):
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = stored_blog
    uploader.upload_image.side_effect = ImageUploadError("boom")

    await repository.update(str(BLOG_ID), UpdateBlogRequest(title="Renamed"), AUTHOR_ID, image_file)

    changes = collection.find_one_and_update.await_args.args[1]["$set"]
    assert changes["title"] == "Renamed"
    assert "featuredImage" not in changes
    uploader.delete_image.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_removes_new_image_when_blog_vanishes(repository, collection, uploader, stored_blog, image_file):
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = None

    with pytest.raises(BlogNotFoundError):
        await repository.update(str(BLOG_ID), UpdateBlogRequest(), AUTHOR_ID, image_file)

    uploader.delete_image.assert_awaited_once_with("blogs/new")


@pytest.mark.asyncio
async def test_delete_removes_blog_and_image(repository, collection, uploader, stored_blog):
    collection.find_one.return_value = stored_blog

    await repository.delete(str(BLOG_ID), AUTHOR_ID)

    collection.delete_one.assert_awaited_once_with({"_id": BLOG_ID})
    uploader.delete_image.assert_awaited_once_with("blogs/old")


@pytest.mark.asyncio
async def test_delete_succeeds_when_image_removal_fails(repository, collection, uploader, stored_blog):
    collection.find_one.return_value = stored_blog
    uploader.delete_image.return_value = False

    await repository.delete(str(BLOG_ID), AUTHOR_ID)

    collection.delete_one.assert_awaited_once()


# --- publish ---


@pytest.mark.asyncio
async def test_publish_sets_published_at_once(repository, collection, stored_blog):
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = stored_blog

    await repository.publish(str(BLOG_ID), AUTHOR_ID)

    changes = collection.find_one_and_update.await_args.args[1]["$set"]
    assert changes["status"] == "published"
    assert isinstance(changes["publishedAt"], datetime)


@pytest.mark.asyncio
async def test_republish_keeps_original_published_at(repository, collection, stored_blog):
    stored_blog["publishedAt"] = datetime.now(timezone.utc) - timedelta(days=30)
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = stored_blog

    await repository.publish(str(BLOG_ID), AUTHOR_ID)

    changes = collection.find_one_and_update.await_args.args[1]["$set"]
    assert "publishedAt" not in changes


@pytest.mark.asyncio
async def test_unpublish_returns_to_draft(repository, collection, stored_blog):
    collection.find_one.return_value = stored_blog
    collection.find_one_and_update.return_value = stored_blog

    await repository.unpublish(str(BLOG_ID), AUTHOR_ID)

    changes = collection.find_one_and_update.await_args.args[1]["$set"]
    assert changes["status"] == "draft"


@pytest.mark.asyncio
async def test_publish_by_non_author_is_forbidden(repository, collection, stored_blog):
    collection.find_one.return_value = stored_blog

    with pytest.raises(BlogForbiddenError):
        await repository.publish(str(BLOG_ID), READER_ID)


# --- likes / views ---


@pytest.mark.asyncio
async def test_add_like_uses_add_to_set(repository, collection):
    collection.find_one_and_update.return_value = {"_id": BLOG_ID, "likes": [READER_ID]}

    count = await repository.add_like(str(BLOG_ID), READER_ID)

    update = collection.find_one_and_update.await_args.args[1]
    assert update["$addToSet"] == {"likes": READER_ID}
    assert count == 1


@pytest.mark.asyncio
async def test_remove_like_uses_pull(repository, collection):
    collection.find_one_and_update.return_value = {"_id": BLOG_ID, "likes": []}

    count = await repository.remove_like(str(BLOG_ID), READER_ID)

    update = collection.find_one_and_update.await_args.args[1]
    assert update["$pull"] == {"likes": READER_ID}
    assert count == 0


@pytest.mark.asyncio
async def test_add_like_twice_keeps_single_entry(repository, collection):
    collection.find_one_and_update.return_value = {"_id": BLOG_ID, "likes": [READER_ID]}

    first = await repository.add_like(str(BLOG_ID), READER_ID)
    second = await repository.add_like(str(BLOG_ID), str(READER_ID))

    updates = [call.args[1] for call in collection.find_one_and_update.await_args_list]
    assert [u["$addToSet"] for u in updates] == [{"likes": READER_ID}, {"likes": READER_ID}]
    assert first == second == 1


@pytest.mark.asyncio
async def test_remove_like_of_absent_user_returns_count(repository, collection):
    other = ObjectId()
    collection.find_one_and_update.return_value = {"_id": BLOG_ID, "likes": [other]}

    count = await repository.remove_like(str(BLOG_ID), READER_ID)

    assert collection.find_one_and_update.await_args.args[1]["$pull"] == {"likes": READER_ID}
    assert count == 1


@pytest.mark.asyncio
async def test_like_missing_blog(repository, collection):
    collection.find_one_and_update.return_value = None

    with pytest.raises(BlogNotFoundError):
        await repository.add_like(str(BLOG_ID), READER_ID)


@pytest.mark.asyncio
async def test_increment_views(repository, collection):
    collection.find_one_and_update.return_value = {"_id": BLOG_ID, "viewCount": 8}

    assert await repository.increment_views(str(BLOG_ID)) == 8
    update = collection.find_one_and_update.await_args.args[1]
    assert update["$inc"] == {"viewCount": 1}


# --- comments ---


@pytest.mark.asyncio
@pytest.mark.parametrize("content, message", [("   ", "required"), (None, "required"), ("c" * 1001, "1000")])
async def test_add_comment_validates_content(repository, collection, content, message):
    with pytest.raises(BlogValidationError, match=message):
        await repository.add_comment(str(BLOG_ID), READER_ID, content)

    collection.find_one_and_update.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_comment_pushes_trimmed_comment(repository, collection):
    collection.find_one_and_update.return_value = {"_id": BLOG_ID}

    await repository.add_comment(str(BLOG_ID), READER_ID, "  Nice post!  ")

    query, update = collection.find_one_and_update.await_args.args
    assert query == {"_id": BLOG_ID, "isCommentEnabled": {"$ne": False}}
    comment = update["$push"]["comments"]
    assert comment["content"] == "Nice post!"
    assert comment["user"] == READER_ID
    assert isinstance(comment["_id"], ObjectId)
    assert isinstance(comment["createdAt"], datetime)


@pytest.mark.asyncio
async def test_add_comment_when_disabled(repository, collection):
    collection.find_one_and_update.return_value = None
    collection.find_one.return_value = {"_id": BLOG_ID}

    with pytest.raises(BlogValidationError, match="disabled"):
        await repository.add_comment(str(BLOG_ID), READER_ID, "hi")


@pytest.mark.asyncio
async def test_add_comment_missing_blog(repository, collection):
    collection.find_one_and_update.return_value = None
    collection.find_one.return_value = None

    with pytest.raises(BlogNotFoundError):
        await repository.add_comment(str(BLOG_ID), READER_ID, "hi")


@pytest.fixture
def commented_blog():
    comment_id = ObjectId()
    return comment_id, {
        "_id": BLOG_ID,
        "author": AUTHOR_ID,
        "comments": [{"_id": comment_id, "user": READER_ID, "content": "hi"}],
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("requester", [READER_ID, AUTHOR_ID])
async def test_delete_comment_by_commenter_or_author(repository, collection, commented_blog, requester):
    comment_id, blog = commented_blog
    collection.find_one.return_value = blog

    await repository.delete_comment(str(BLOG_ID), str(comment_id), requester)

    update = collection.update_one.await_args.args[1]
    assert update["$pull"] == {"comments": {"_id": comment_id}}


@pytest.mark.asyncio
async def test_delete_comment_by_stranger_is_forbidden(repository, collection, commented_blog):
    comment_id, blog = commented_blog
    collection.find_one.return_value = blog

    with pytest.raises(BlogForbiddenError):
        await repository.delete_comment(str(BLOG_ID), str(comment_id), ObjectId())

    collection.update_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_missing_comment(repository, collection, commented_blog):
    _, blog = commented_blog
    collection.find_one.return_value = blog

    with pytest.raises(BlogNotFoundError, match="Comment not found"):
        await repository.delete_comment(str(BLOG_ID), str(ObjectId()), AUTHOR_ID)
