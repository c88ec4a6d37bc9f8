"""
# Blog Models

This module defines the data structures of the blog platform: the persisted blog
document, the request bodies accepted by the API, and the response envelope.

## Domain Model Overview

- **Blog**: the only entity owned by this service. Content, classification
  (categories, tags, keywords), lifecycle status, and engagement (likes, comments,
  view count) live on a single document in the `blogs` collection.
- **Comment**: embedded in its blog, individually addressable by `_id`.
- **Author summary**: the `username`, `fullName` and `avatar` of a user, joined from the
  `users` collection at read time. Credentials are never exposed.

## Field Naming

Documents are stored and served with camelCase keys (`featuredImage`, `publishedAt`,
`isCommentEnabled`) because that is the wire contract of the API. Python attributes
are snake_case and mapped through `to_camel` aliases.

## Content Safety

Plain-text inputs (title, excerpt, meta description, comments) have all HTML removed
with `bleach`. Post content keeps a small allow-list of formatting tags.

Attributes:
    BLOG_STATUSES (List[str]): Valid lifecycle states for a blog.
    TITLE_MAX_LENGTH (int): Maximum title length.
    EXCERPT_MAX_LENGTH (int): Maximum excerpt length.
    META_DESCRIPTION_MAX_LENGTH (int): Maximum meta description length.
    COMMENT_MAX_LENGTH (int): Maximum comment length.
    SORTABLE_FIELDS (List[str]): Fields accepted by the `sortBy` listing parameter.
"""

import html
from datetime import datetime
from enum import Enum
from math import ceil
from typing import Any, Dict, List, Optional

import bleach
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

BLOG_STATUSES = ["draft", "published", "archived"]
TITLE_MAX_LENGTH = 200
EXCERPT_MAX_LENGTH = 300
META_DESCRIPTION_MAX_LENGTH = 160
COMMENT_MAX_LENGTH = 1000
SORTABLE_FIELDS = ["createdAt", "updatedAt", "publishedAt", "viewCount", "likeCount", "commentCount", "title"]

CONTENT_ALLOWED_TAGS = [
    "p", "br", "strong", "em", "code", "pre", "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "blockquote", "a", "img", "hr", "table", "thead", "tbody",
    "tr", "th", "td",
]
CONTENT_ALLOWED_ATTRIBUTES = {"a": ["href", "title"], "img": ["src", "alt", "title"]}


def strip_html(value: Optional[str]) -> Optional[str]:
    """Remove every HTML tag from a plain-text field.

    Entities are decoded before cleaning so entity-encoded markup is stripped like raw
    markup. The result is HTML-escaped by bleach.
    """
    if value is None:
        return None
    return bleach.clean(html.unescape(value), tags=[], strip=True).strip()


def sanitize_content(value: Optional[str]) -> Optional[str]:
    """Restrict post content to the formatting allow-list."""
    if value is None:
        return None
    return bleach.clean(value, tags=CONTENT_ALLOWED_TAGS, attributes=CONTENT_ALLOWED_ATTRIBUTES, strip=True)


class BlogStatus(str, Enum):
    """Enumeration of blog lifecycle states.

    Attributes:
        DRAFT: Being written, visible to the author only.
        PUBLISHED: Publicly listed once `publishedAt` has passed.
        ARCHIVED: Kept but no longer listed.
    """
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, arbitrary_types_allowed=True, use_enum_values=True
    )


# Database Schema Models
class CommentDocument(CamelModel):
    """A comment embedded in the `comments` array of a blog document."""

    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    user: ObjectId
    content: str
    created_at: datetime


class BlogDocument(CamelModel):
    """
    MongoDB document model for the `blogs` collection.

    `likeCount` and `commentCount` are not stored; they are computed from the array
    sizes by the read pipelines.
    """

    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    featured_image: str = ""
    featured_image_public_id: Optional[str] = None
    meta_description: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    author: ObjectId
    status: BlogStatus = BlogStatus.DRAFT
    published_at: Optional[datetime] = None
    view_count: int = 0
    likes: List[ObjectId] = Field(default_factory=list)
    comments: List[CommentDocument] = Field(default_factory=list)
    reading_time: int = 0
    is_comment_enabled: bool = True
    created_at: datetime
    updated_at: datetime

    def to_mongo(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="python")


# Request Models
class CreateBlogRequest(CamelModel):
    """
    Input for creating a blog.

    `categories`, `tags` and `keywords` arrive as comma-delimited strings (the endpoint
    takes multipart form data so an image can be attached). Length caps are enforced by
    the repository so that they hold for every caller, not just HTTP.
    """

    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    categories: Optional[str] = None
    tags: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: Optional[str] = None
    is_comment_enabled: Optional[bool] = None

    @field_validator("title", "excerpt", "meta_description")
    @classmethod
    def validate_plain_text(cls, v):
        return strip_html(v)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return sanitize_content(v)


class UpdateBlogRequest(CreateBlogRequest):
    """
    Partial update of a blog.

    Only truthy fields are applied: an omitted field and an empty string are both
    treated as "leave unchanged". `isCommentEnabled` is applied whenever it is sent.
    """


class CreateCommentRequest(BaseModel):
    """Request body for posting a comment."""

    content: Optional[str] = None

    @field_validator("content")
    @classmethod
    def validate_content(cls, v):
        return strip_html(v)


# Response Models
class PaginatedBlogs(BaseModel):
    """
    One page of blogs.

    The key names follow the aggregate-paginate convention the frontend consumes
    (`data.docs`, `data.totalPages`, ...).
    """

    docs: List[Dict[str, Any]]
    totalDocs: int
    limit: int
    page: int
    totalPages: int
    pagingCounter: int
    hasPrevPage: bool
    hasNextPage: bool
    prevPage: Optional[int] = None
    nextPage: Optional[int] = None

    @classmethod
    def from_page(cls, docs: List[Dict[str, Any]], total: int, page: int, limit: int) -> "PaginatedBlogs":
        total_pages = max(1, ceil(total / limit)) if limit else 1
        has_prev = page > 1
        has_next = page < total_pages
        return cls(
            docs=docs,
            totalDocs=total,
            limit=limit,
            page=page,
            totalPages=total_pages,
            pagingCounter=(page - 1) * limit + 1,
            hasPrevPage=has_prev,
            hasNextPage=has_next,
            prevPage=page - 1 if has_prev else None,
            nextPage=page + 1 if has_next else None,
        )


class ApiResponse(BaseModel):
    """Success envelope returned by every endpoint."""

    statusCode: int
    data: Any = None
    message: str = "Success"
    success: bool = True


class ApiErrorResponse(BaseModel):
    """Error envelope returned for every failure."""

    statusCode: int
    message: str
    success: bool = False
    errors: List[Any] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "statusCode": 404,
                "message": "Blog not found",
                "success": False,
                "errors": [],
            }
        }
    )
