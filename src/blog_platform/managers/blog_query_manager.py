"""
# Blog Query Service

Read side of the blog API. Every listing is a `BlogQuery` composed from a few building
blocks and executed as a single `$facet` aggregation, so one round trip returns both the
requested page and the total count.

## Visibility Rules

- Public listings (feed, search, category, tag) only show blogs that are `published`
  **and** whose `publishedAt` has passed.
- `get_by_slug` only resolves published blogs; `get_by_id` resolves any blog.
- Author listings show everything to the author (optionally filtered by status) and only
  published blogs to everyone else.

Attributes:
    logger (Logger): Query service logger (`[Blog Queries]`).
    blog_query_service (BlogQueryService): Global singleton instance.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from blog_platform.config import settings
from blog_platform.database.manager import BLOGS_COLLECTION, db_manager
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import BLOG_STATUSES, SORTABLE_FIELDS, BlogStatus, PaginatedBlogs
from blog_platform.services.blog_query_builder import BlogQuery, detail_pipeline
from blog_platform.utils.errors import BlogNotFoundError, BlogValidationError
from blog_platform.utils.object_ids import parse_object_id

logger = get_logger(prefix="[Blog Queries]")


class BlogQueryService:
    """Paginated and single-document reads over the `blogs` collection."""

    @property
    def collection(self):
        return db_manager.get_collection(BLOGS_COLLECTION)

    @staticmethod
    def _base(page: int, limit: int) -> BlogQuery:
        return BlogQuery().page_of(page, min(limit, settings.MAX_PAGE_SIZE))

    async def _run(self, query: BlogQuery) -> PaginatedBlogs:
        cursor = self.collection.aggregate(query.paginated_pipeline())
        results = await cursor.to_list(length=1)
        return query.to_page(results[0] if results else None)

    async def _one(self, match: Dict[str, Any]) -> Dict[str, Any]:
        cursor = self.collection.aggregate(detail_pipeline(match))
        docs = await cursor.to_list(length=1)
        if not docs:
            raise BlogNotFoundError()
        return docs[0]

    async def list_blogs(
        self,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
    ) -> PaginatedBlogs:
        """
        Public feed of published blogs, newest first by default.

        Args:
            category (Optional[str]): Only blogs in this category.
            tag (Optional[str]): Only blogs with this tag.
            page (int): 1-indexed page number.
            limit (int): Page size, capped at `MAX_PAGE_SIZE`.
            sort_by (str): One of `SORTABLE_FIELDS`, sorted descending.

        Raises:
            BlogValidationError: If `sort_by` is not a sortable field.
        """
        if sort_by not in SORTABLE_FIELDS:
            raise BlogValidationError(f"Invalid sort field. Allowed: {', '.join(SORTABLE_FIELDS)}")

        query = self._base(page, limit).published(datetime.now(timezone.utc)).sorted_by(sort_by)
        if category:
            query = query.where(categories=category.strip().lower())
        if tag:
            query = query.where(tags=tag.strip().lower())
        return await self._run(query)

    async def get_by_id(self, blog_id: str) -> Dict[str, Any]:
        """A blog in any status, with author, likers and commenters populated."""
        return await self._one({"_id": parse_object_id(blog_id)})

    async def get_by_slug(self, slug: str) -> Dict[str, Any]:
        """A published blog by slug, fully populated."""
        return await self._one({"slug": slug.strip().lower(), "status": BlogStatus.PUBLISHED.value})

    async def get_by_author(
        self,
        author_id: Any,
        requester_id: Optional[Any] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> PaginatedBlogs:
        """
        Blogs written by `author_id`, newest first.

        When the requester is the author every status is visible and `status` narrows
        the result. Anyone else (including anonymous callers) sees published blogs only
        and `status` is ignored.

        Raises:
            BlogValidationError: Malformed author id or unknown status.
        """
        author = parse_object_id(author_id, BlogValidationError, "Invalid user id")
        query = self._base(page, limit).where(author=author).sorted_by("createdAt")

        is_owner = requester_id is not None and str(requester_id) == str(author)
        if is_owner:
            if status:
                if status not in BLOG_STATUSES:
                    raise BlogValidationError(f"Invalid status. Allowed: {', '.join(BLOG_STATUSES)}")
                query = query.where(status=status)
        else:
            query = query.published(datetime.now(timezone.utc))

        logger.debug("Listing blogs of author %s (owner view: %s)", author, is_owner)
        return await self._run(query)

    async def search(self, text: Optional[str], page: int = 1, limit: int = 10) -> PaginatedBlogs:
        """
        Full-text search over title and content of published blogs, best match first.

        Raises:
            BlogValidationError: If the query is empty or blank.
        """
        if not text or not text.strip():
            raise BlogValidationError("Search query is required")
        query = self._base(page, limit).published(datetime.now(timezone.utc)).search(text.strip())
        return await self._run(query)

    async def by_category(self, category: str, page: int = 1, limit: int = 10) -> PaginatedBlogs:
        query = (
            self._base(page, limit)
            .published(datetime.now(timezone.utc))
            .where(categories=category.strip().lower())
            .sorted_by("publishedAt")
        )
        return await self._run(query)

    async def by_tag(self, tag: str, page: int = 1, limit: int = 10) -> PaginatedBlogs:
        query = (
            self._base(page, limit)
            .published(datetime.now(timezone.utc))
            .where(tags=tag.strip().lower())
            .sorted_by("publishedAt")
        )
        return await self._run(query)


blog_query_service = BlogQueryService()
