"""
# Blog Repository

This module owns **every write** to the `blogs` collection: creation, partial updates,
deletion, publishing, likes, comments and view counting.

## Responsibilities

### 1. Validation
Required fields and length caps are checked before anything is persisted or uploaded,
so a rejected request leaves no side effects (no orphaned image on the host, no
half-written document).

### 2. Derived Fields
Slug, reading time, `publishedAt` and `updatedAt` are computed by the pure functions in
`blog_platform.services.blog_fields` and written together with the change that
implies them.

### 3. Authorization
Content changes are author-only. Deleting a comment is allowed to the commenter and to
the blog's author. Likes, comments and views are open to any authenticated (or, for
views, anonymous) caller.

### 4. Concurrency
Engagement mutations use single-document atomic operators, so concurrent requests
never overwrite each other:

| Operation | Operator |
|---|---|
| like / unlike | `$addToSet` / `$pull` on `likes` |
| comment / delete comment | `$push` / `$pull` on `comments` |
| view | `$inc` on `viewCount` |

## Usage

```python
from blog_platform.managers.blog_manager import blog_repository

blog = await blog_repository.create(CreateBlogRequest(title="Hi", content="..."), author_id)
likes = await blog_repository.add_like(str(blog["_id"]), reader_id)
```

Attributes:
    logger (Logger): Repository logger (`[Blog Repository]`).
    blog_repository (BlogRepository): Global singleton instance.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from blog_platform.database.manager import BLOGS_COLLECTION, db_manager
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import (
    COMMENT_MAX_LENGTH,
    EXCERPT_MAX_LENGTH,
    META_DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    BlogDocument,
    BlogStatus,
    CommentDocument,
    CreateBlogRequest,
    UpdateBlogRequest,
)
from blog_platform.services.blog_fields import (
    apply_derived_fields,
    next_available_slug,
    slug_collision_pattern,
    slugify,
    split_csv_list,
)
from blog_platform.services.blog_query_builder import detail_pipeline
from blog_platform.services.image_upload_service import (
    ImageUploadError,
    ImageUploadService,
    UploadedImage,
    image_upload_service,
)
from blog_platform.utils.errors import BlogForbiddenError, BlogNotFoundError, BlogValidationError
from blog_platform.utils.object_ids import parse_object_id

logger = get_logger(prefix="[Blog Repository]")

LIST_FIELDS = ("categories", "tags", "keywords")
SLUG_INSERT_ATTEMPTS = 3

LENGTH_LIMITS = {
    "title": (TITLE_MAX_LENGTH, "Title cannot exceed 200 characters"),
    "excerpt": (EXCERPT_MAX_LENGTH, "Excerpt cannot exceed 300 characters"),
    "metaDescription": (META_DESCRIPTION_MAX_LENGTH, "Meta description cannot exceed 160 characters"),
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_lengths(fields: Dict[str, Any]):
    for field_name, (limit, message) in LENGTH_LIMITS.items():
        value = fields.get(field_name)
        if value is not None and len(value) > limit:
            raise BlogValidationError(message)


def _content_fields(payload: CreateBlogRequest) -> Dict[str, Any]:
    """Truthy fields of a create/update payload, as stored camelCase keys."""
    fields: Dict[str, Any] = {}
    for attr, key in (
        ("title", "title"),
        ("content", "content"),
        ("excerpt", "excerpt"),
        ("meta_description", "metaDescription"),
    ):
        value = getattr(payload, attr)
        if value and value.strip():
            fields[key] = value.strip()
    for list_field in LIST_FIELDS:
        raw = getattr(payload, list_field)
        if raw:
            fields[list_field] = split_csv_list(raw)
    return fields


class BlogRepository:
    """
    Persisting operations on blog documents.

    Args:
        uploader (ImageUploadService): Image host client for featured images.
    """

    def __init__(self, uploader: ImageUploadService = image_upload_service):
        self.uploader = uploader

    @property
    def collection(self):
        return db_manager.get_collection(BLOGS_COLLECTION)

    async def _unique_slug(self, title: str) -> str:
        base = slugify(title)
        cursor = self.collection.find({"slug": {"$regex": slug_collision_pattern(base)}}, {"slug": 1})
        taken = [doc["slug"] for doc in await cursor.to_list(length=None)]
        return next_available_slug(base, taken)

    async def _upload(self, featured_image) -> UploadedImage:
        content = await featured_image.read()
        return await self.uploader.upload_image(content, featured_image.filename, featured_image.content_type)

    async def _remove_image(self, public_id: Optional[str]):
        if not public_id:
            return
        if not await self.uploader.delete_image(public_id):
            logger.warning("Featured image %s could not be removed from the image host", public_id)

    async def _get_owned_blog(self, blog_id: str, requester_id: Any, action: str) -> Dict[str, Any]:
        oid = parse_object_id(blog_id)
        blog = await self.collection.find_one({"_id": oid})
        if blog is None:
            raise BlogNotFoundError()
        if blog.get("author") != parse_object_id(requester_id, BlogForbiddenError):
            logger.warning("User %s denied write access to blog %s", requester_id, blog_id)
            raise BlogForbiddenError(f"You can only {action} your own blogs")
        return blog

    async def fetch_detail(self, oid: ObjectId) -> Optional[Dict[str, Any]]:
        """Load one blog with author, likers and commenters populated."""
        cursor = self.collection.aggregate(detail_pipeline({"_id": oid}))
        docs = await cursor.to_list(length=1)
        return docs[0] if docs else None

    async def create(self, payload: CreateBlogRequest, author_id: Any, featured_image=None) -> Dict[str, Any]:
        """
        Create a draft blog owned by `author_id`.

        Args:
            payload (CreateBlogRequest): Title, content and optional metadata.
            author_id: Id of the authenticated author.
            featured_image: Optional uploaded file (anything with `filename`,
                `content_type` and an async `read()`, e.g. FastAPI's `UploadFile`).

        Returns:
            Dict[str, Any]: The stored blog with its author populated.

        Raises:
            BlogValidationError: Missing title/content, a length cap exceeded, or the
                featured image could not be uploaded.
        """
        fields = _content_fields(payload)
        if not fields.get("title") or not fields.get("content"):
            raise BlogValidationError("Title and content are required")
        _validate_lengths(fields)
        author = parse_object_id(author_id, BlogValidationError, "Invalid author")

        image: Optional[UploadedImage] = None
        if featured_image is not None:
            try:
                image = await self._upload(featured_image)
            except ImageUploadError as e:
                logger.warning("Featured image upload failed for new blog by %s: %s", author, e)
                raise BlogValidationError("Error while uploading featured image") from e

        now = _now()
        fields = apply_derived_fields(fields, None, now)
        fields.update(
            {
                "author": author,
                "status": BlogStatus.DRAFT.value,
                "isCommentEnabled": payload.is_comment_enabled if payload.is_comment_enabled is not None else True,
                "featuredImage": image.url if image else "",
                "featuredImagePublicId": image.public_id if image else None,
                "createdAt": now,
            }
        )

        try:
            result = await self._insert_with_unique_slug(fields)
        except Exception:
            if image:
                logger.warning("Create failed, removing uploaded image %s", image.public_id)
                await self._remove_image(image.public_id)
            raise

        logger.info("Created blog %s (slug %s) for author %s", result.inserted_id, fields["slug"], author)
        return await self.fetch_detail(result.inserted_id)

    async def _insert_with_unique_slug(self, fields: Dict[str, Any]):
        for attempt in range(SLUG_INSERT_ATTEMPTS):
            fields["slug"] = await self._unique_slug(fields["title"])
            document = BlogDocument.model_validate(fields).to_mongo()
            try:
                return await self.collection.insert_one(document)
            except DuplicateKeyError:
                if attempt == SLUG_INSERT_ATTEMPTS - 1:
                    raise
                logger.info("Slug %s was taken concurrently, retrying", fields["slug"])

    async def update(
        self, blog_id: str, payload: UpdateBlogRequest, requester_id: Any, featured_image=None
    ) -> Dict[str, Any]:
        """
        Apply a partial update to a blog the requester authored.

        Only truthy fields are applied; `isCommentEnabled` is applied whenever it is not
        `None`. A new featured image replaces the old one, which is then removed from the
        image host. If the upload fails the previous image is kept and the rest of the
        update still goes through.

        Raises:
            BlogNotFoundError: The blog does not exist.
            BlogForbiddenError: The requester is not the author.
            BlogValidationError: A length cap is exceeded.
        """
        blog = await self._get_owned_blog(blog_id, requester_id, "update")
        changes = _content_fields(payload)
        _validate_lengths(changes)
        if payload.is_comment_enabled is not None:
            changes["isCommentEnabled"] = payload.is_comment_enabled
        if not blog.get("slug"):
            changes["slug"] = await self._unique_slug(changes.get("title") or blog.get("title", ""))

        replaced_public_id = None
        if featured_image is not None:
            try:
                image = await self._upload(featured_image)
                changes["featuredImage"] = image.url
                changes["featuredImagePublicId"] = image.public_id
                replaced_public_id = blog.get("featuredImagePublicId")
            except ImageUploadError as e:
                logger.warning("Featured image upload failed for blog %s, keeping previous image: %s", blog_id, e)

        changes = apply_derived_fields(changes, blog, _now())
        try:
            updated = await self.collection.find_one_and_update(
                {"_id": blog["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
            )
            if updated is None:
                raise BlogNotFoundError()
        except Exception:
            if "featuredImagePublicId" in changes:
                logger.warning("Update of blog %s failed, removing uploaded image", blog_id)
                await self._remove_image(changes.get("featuredImagePublicId"))
            raise

        await self._remove_image(replaced_public_id)
        logger.info("Updated blog %s fields: %s", blog_id, sorted(changes))
        return await self.fetch_detail(blog["_id"])

    async def delete(self, blog_id: str, requester_id: Any):
        """Delete a blog the requester authored, then remove its featured image."""
        blog = await self._get_owned_blog(blog_id, requester_id, "delete")
        result = await self.collection.delete_one({"_id": blog["_id"]})
        if result.deleted_count == 0:
            raise BlogNotFoundError()
        await self._remove_image(blog.get("featuredImagePublicId"))
        logger.info("Deleted blog %s", blog_id)

    async def _set_status(self, blog_id: str, requester_id: Any, status: BlogStatus, action: str) -> Dict[str, Any]:
        blog = await self._get_owned_blog(blog_id, requester_id, action)
        changes = apply_derived_fields({"status": status.value}, blog, _now())
        updated = await self.collection.find_one_and_update(
            {"_id": blog["_id"]}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise BlogNotFoundError()
        logger.info("Blog %s status set to %s", blog_id, status.value)
        return await self.fetch_detail(blog["_id"])

    async def publish(self, blog_id: str, requester_id: Any) -> Dict[str, Any]:
        """Publish a blog. `publishedAt` is stamped only the first time."""
        return await self._set_status(blog_id, requester_id, BlogStatus.PUBLISHED, "publish")

    async def unpublish(self, blog_id: str, requester_id: Any) -> Dict[str, Any]:
        """Return a blog to draft, keeping its original `publishedAt`."""
        return await self._set_status(blog_id, requester_id, BlogStatus.DRAFT, "unpublish")

    async def _update_likes(self, blog_id: str, user_id: Any, operator: str) -> int:
        oid = parse_object_id(blog_id)
        user = parse_object_id(user_id, BlogValidationError, "Invalid user")
        updated = await self.collection.find_one_and_update(
            {"_id": oid},
            {operator: {"likes": user}, "$set": {"updatedAt": _now()}},
            projection={"likes": 1},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise BlogNotFoundError()
        return len(updated.get("likes", []))

    async def add_like(self, blog_id: str, user_id: Any) -> int:
        """Like a blog. Liking twice has no further effect. Returns the like count."""
        count = await self._update_likes(blog_id, user_id, "$addToSet")
        logger.info("User %s liked blog %s", user_id, blog_id)
        return count

    async def remove_like(self, blog_id: str, user_id: Any) -> int:
        """Remove a like, if present. Returns the like count."""
        count = await self._update_likes(blog_id, user_id, "$pull")
        logger.info("User %s unliked blog %s", user_id, blog_id)
        return count

    async def add_comment(self, blog_id: str, user_id: Any, content: Optional[str]) -> List[Dict[str, Any]]:
        """
        Append a comment to a blog that accepts comments.

        Returns:
            List[Dict[str, Any]]: All comments of the blog, with commenters populated.

        Raises:
            BlogValidationError: Empty or oversized content, or comments are disabled.
            BlogNotFoundError: The blog does not exist.
        """
        content = (content or "").strip()
        if not content:
            raise BlogValidationError("Comment content is required")
        if len(content) > COMMENT_MAX_LENGTH:
            raise BlogValidationError("Comment cannot exceed 1000 characters")

        oid = parse_object_id(blog_id)
        now = _now()
        comment = CommentDocument(
            user=parse_object_id(user_id, BlogValidationError, "Invalid user"), content=content, created_at=now
        )
        updated = await self.collection.find_one_and_update(
            {"_id": oid, "isCommentEnabled": {"$ne": False}},
            {"$push": {"comments": comment.model_dump(by_alias=True)}, "$set": {"updatedAt": now}},
            projection={"_id": 1},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            if await self.collection.find_one({"_id": oid}, {"_id": 1}) is None:
                raise BlogNotFoundError()
            raise BlogValidationError("Comments are disabled for this blog")

        logger.info("User %s commented on blog %s (comment %s)", user_id, blog_id, comment.id)
        blog = await self.fetch_detail(oid)
        return blog.get("comments", []) if blog else []

    async def delete_comment(self, blog_id: str, comment_id: str, requester_id: Any):
        """Remove a comment. Allowed to the commenter and to the blog's author."""
        oid = parse_object_id(blog_id)
        blog = await self.collection.find_one({"_id": oid}, {"author": 1, "comments": 1})
        if blog is None:
            raise BlogNotFoundError()

        cid = parse_object_id(comment_id, BlogNotFoundError, "Comment not found")
        comment = next((c for c in blog.get("comments", []) if c.get("_id") == cid), None)
        if comment is None:
            raise BlogNotFoundError("Comment not found")

        requester = parse_object_id(requester_id, BlogForbiddenError)
        if requester not in (comment.get("user"), blog.get("author")):
            logger.warning("User %s denied deletion of comment %s on blog %s", requester_id, comment_id, blog_id)
            raise BlogForbiddenError("You can only delete your own comments or comments on your blog")

        await self.collection.update_one(
            {"_id": oid}, {"$pull": {"comments": {"_id": cid}}, "$set": {"updatedAt": _now()}}
        )
        logger.info("Deleted comment %s from blog %s", comment_id, blog_id)

    async def increment_views(self, blog_id: str) -> int:
        """Count one view. Returns the new view count."""
        oid = parse_object_id(blog_id)
        updated = await self.collection.find_one_and_update(
            {"_id": oid},
            {"$inc": {"viewCount": 1}, "$set": {"updatedAt": _now()}},
            projection={"viewCount": 1},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise BlogNotFoundError()
        return updated.get("viewCount", 0)


blog_repository = BlogRepository()
