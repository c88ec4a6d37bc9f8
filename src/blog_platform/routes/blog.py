"""
# Blog Routes

This module exposes the **Blog API**: public reading (feed, search, category/tag
listings, single posts), authoring (create, update, publish, delete) and engagement
(likes, comments, views).

## Endpoint Overview

| Method | Path | Auth |
|---|---|---|
| GET | `/blogs` | - |
| GET | `/blogs/search?q=` | - |
| GET | `/blogs/category/{category}` | - |
| GET | `/blogs/tag/{tag}` | - |
| GET | `/blogs/slug/{slug}` | - |
| GET | `/blogs/my-blogs` | required |
| GET | `/blogs/user/{user_id}` | optional |
| GET | `/blogs/{blog_id}` | - |
| PATCH | `/blogs/{blog_id}/view` | - |
| POST | `/blogs/create` | required |
| PATCH | `/blogs/{blog_id}/update` | required |
| DELETE | `/blogs/{blog_id}/delete` | required |
| PATCH | `/blogs/{blog_id}/publish` | required |
| PATCH | `/blogs/{blog_id}/unpublish` | required |
| POST | `/blogs/{blog_id}/like` | required |
| POST | `/blogs/{blog_id}/unlike` | required |
| POST | `/blogs/{blog_id}/comment` | required |
| DELETE | `/blogs/{blog_id}/comment/{comment_id}` | required |

Fixed paths (`/search`, `/my-blogs`, ...) are registered before `/{blog_id}` so they are
never captured as an id.

## Request Formats

`create` and `update` take **multipart form data** so a `featuredImage` file can travel
with the fields. `categories`, `tags` and `keywords` are comma-delimited strings. The
comment endpoint takes JSON `{"content": "..."}`.

## Responses

Every success is wrapped as `{statusCode, data, message, success}`. Errors raised as
`BlogAPIError` are rendered by the application's exception handlers.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from blog_platform.config import settings
from blog_platform.managers.blog_manager import blog_repository
from blog_platform.managers.blog_query_manager import blog_query_service
from blog_platform.managers.logging_manager import get_logger
from blog_platform.models.blog_models import CreateBlogRequest, CreateCommentRequest, UpdateBlogRequest
from blog_platform.routes.auth_dependencies import get_current_user, get_optional_user
from blog_platform.utils.api_response import api_response
from blog_platform.utils.errors import BlogAPIError

logger = get_logger(prefix="[Blog Routes]")

router = APIRouter(prefix="/blogs", tags=["Blogs"])


def _page_param():
    return Query(1, ge=1, description="Page number (1-based)")


def _limit_param():
    return Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Blogs per page")


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.error("Failed to %s: %s", action, e, exc_info=True)
    return HTTPException(status_code=500, detail=f"Failed to {action}")


# --- Public reads ---


@router.get("")
async def list_blogs(
    category: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    sortBy: str = Query("createdAt", description="Sort field, always descending"),
    page: int = _page_param(),
    limit: int = _limit_param(),
):
    """
    Public feed of published blogs.

    Args:
        category (str, optional): Filter by category.
        tag (str, optional): Filter by tag.
        sortBy (str): `createdAt`, `updatedAt`, `publishedAt`, `viewCount`, `likeCount`,
            `commentCount` or `title`.
        page (int): Page number.
        limit (int): Page size.

    Returns:
        The paginated result in the response envelope.
    """
    try:
        result = await blog_query_service.list_blogs(category=category, tag=tag, page=page, limit=limit, sort_by=sortBy)
        return api_response(result.model_dump(), "Blogs fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch blogs", e)


@router.get("/search")
async def search_blogs(q: Optional[str] = Query(None), page: int = _page_param(), limit: int = _limit_param()):
    """Full-text search over published blogs, most relevant first. A blank `q` is a 400."""
    try:
        result = await blog_query_service.search(q, page=page, limit=limit)
        return api_response(result.model_dump(), "Search results fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("search blogs", e)


@router.get("/category/{category}")
async def get_blogs_by_category(category: str, page: int = _page_param(), limit: int = _limit_param()):
    try:
        result = await blog_query_service.by_category(category, page=page, limit=limit)
        return api_response(result.model_dump(), f"Blogs in category '{category}' fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch blogs by category", e)


@router.get("/tag/{tag}")
async def get_blogs_by_tag(tag: str, page: int = _page_param(), limit: int = _limit_param()):
    try:
        result = await blog_query_service.by_tag(tag, page=page, limit=limit)
        return api_response(result.model_dump(), f"Blogs with tag '{tag}' fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch blogs by tag", e)


@router.get("/slug/{slug}")
async def get_blog_by_slug(slug: str):
    """Published blog by slug, with author, likers and commenters populated."""
    try:
        blog = await blog_query_service.get_by_slug(slug)
        return api_response(blog, "Blog fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch blog", e)


@router.get("/my-blogs")
async def get_my_blogs(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = _page_param(),
    limit: int = _limit_param(),
    current_user: dict = Depends(get_current_user),
):
    """
    The caller's own blogs in every status, newest first.

    Args:
        status_filter (str, optional): `draft`, `published` or `archived` (query param `status`).
    """
    try:
        result = await blog_query_service.get_by_author(
            current_user["_id"], requester_id=current_user["_id"], status=status_filter, page=page, limit=limit
        )
        return api_response(result.model_dump(), "User blogs fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch user blogs", e)


@router.get("/user/{user_id}")
async def get_user_blogs(
    user_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = _page_param(),
    limit: int = _limit_param(),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    """
    Blogs written by `user_id`.

    Other callers (and anonymous ones) only see published blogs. When the caller is the
    author this behaves like `/my-blogs`.
    """
    try:
        result = await blog_query_service.get_by_author(
            user_id,
            requester_id=current_user["_id"] if current_user else None,
            status=status_filter,
            page=page,
            limit=limit,
        )
        return api_response(result.model_dump(), "User blogs fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch user blogs", e)


@router.get("/{blog_id}")
async def get_blog_by_id(blog_id: str):
    try:
        blog = await blog_query_service.get_by_id(blog_id)
        return api_response(blog, "Blog fetched successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("fetch blog", e)


@router.patch("/{blog_id}/view")
async def increment_view_count(blog_id: str):
    """Count a view. No authentication; returns `{viewCount}`."""
    try:
        view_count = await blog_repository.increment_views(blog_id)
        return api_response({"viewCount": view_count}, "View count updated")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("increment view count", e)


# --- Authoring ---


@router.post("/create")
async def create_blog(
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    categories: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    metaDescription: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    isCommentEnabled: Optional[bool] = Form(None),
    featuredImage: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
):
    """
    Create a draft blog authored by the caller.

    **Validation:** `title` (max 200) and `content` are required; `excerpt` max 300,
    `metaDescription` max 160. Fields are checked before the image is uploaded.

    Returns:
        201 with the created blog, author populated.

    Raises:
        BlogValidationError(400): Missing/oversized fields or a failed image upload.
    """
    try:
        payload = CreateBlogRequest(
            title=title,
            content=content,
            excerpt=excerpt,
            categories=categories,
            tags=tags,
            meta_description=metaDescription,
            keywords=keywords,
            is_comment_enabled=isCommentEnabled,
        )
        blog = await blog_repository.create(
            payload, current_user["_id"], featuredImage if _has_file(featuredImage) else None
        )
        return api_response(blog, "Blog created successfully", status.HTTP_201_CREATED)
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("create blog", e)


@router.patch("/{blog_id}/update")
async def update_blog(
    blog_id: str,
    title: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    excerpt: Optional[str] = Form(None),
    categories: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    metaDescription: Optional[str] = Form(None),
    keywords: Optional[str] = Form(None),
    isCommentEnabled: Optional[bool] = Form(None),
    featuredImage: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
):
    """
    Partially update a blog the caller authored.

    Empty fields are ignored rather than clearing the stored value.
    """
    try:
        payload = UpdateBlogRequest(
            title=title,
            content=content,
            excerpt=excerpt,
            categories=categories,
            tags=tags,
            meta_description=metaDescription,
            keywords=keywords,
            is_comment_enabled=isCommentEnabled,
        )
        blog = await blog_repository.update(
            blog_id, payload, current_user["_id"], featuredImage if _has_file(featuredImage) else None
        )
        return api_response(blog, "Blog updated successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("update blog", e)


@router.delete("/{blog_id}/delete")
async def delete_blog(blog_id: str, current_user: dict = Depends(get_current_user)):
    try:
        await blog_repository.delete(blog_id, current_user["_id"])
        return api_response({}, "Blog deleted successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("delete blog", e)


@router.patch("/{blog_id}/publish")
async def publish_blog(blog_id: str, current_user: dict = Depends(get_current_user)):
    """Publish a blog. The first publication date is kept on republish."""
    try:
        blog = await blog_repository.publish(blog_id, current_user["_id"])
        return api_response(blog, "Blog published successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("publish blog", e)


@router.patch("/{blog_id}/unpublish")
async def unpublish_blog(blog_id: str, current_user: dict = Depends(get_current_user)):
    try:
        blog = await blog_repository.unpublish(blog_id, current_user["_id"])
        return api_response(blog, "Blog unpublished successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("unpublish blog", e)


# --- Engagement ---


@router.post("/{blog_id}/like")
async def like_blog(blog_id: str, current_user: dict = Depends(get_current_user)):
    """Like a blog; repeating the call has no further effect. Returns `{likeCount}`."""
    try:
        like_count = await blog_repository.add_like(blog_id, current_user["_id"])
        return api_response({"likeCount": like_count}, "Blog liked successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("like blog", e)


@router.post("/{blog_id}/unlike")
async def unlike_blog(blog_id: str, current_user: dict = Depends(get_current_user)):
    try:
        like_count = await blog_repository.remove_like(blog_id, current_user["_id"])
        return api_response({"likeCount": like_count}, "Blog unliked successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("unlike blog", e)


@router.post("/{blog_id}/comment")
async def add_comment(blog_id: str, request: CreateCommentRequest, current_user: dict = Depends(get_current_user)):
    """
    Add a comment (max 1000 characters) to a blog with comments enabled.

    Returns:
        201 with the blog's comments, commenters populated.
    """
    try:
        comments = await blog_repository.add_comment(blog_id, current_user["_id"], request.content)
        return api_response(comments, "Comment added successfully", status.HTTP_201_CREATED)
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("add comment", e)


@router.delete("/{blog_id}/comment/{comment_id}")
async def delete_comment(blog_id: str, comment_id: str, current_user: dict = Depends(get_current_user)):
    """Delete a comment. Allowed to the commenter and to the blog's author."""
    try:
        await blog_repository.delete_comment(blog_id, comment_id, current_user["_id"])
        return api_response({}, "Comment deleted successfully")
    except (BlogAPIError, HTTPException):
        raise
    except Exception as e:
        raise _server_error("delete comment", e)
