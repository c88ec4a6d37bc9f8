"""ObjectId parsing for ids that arrive as path parameters or token claims."""

from typing import Any, Optional, Type

from bson import ObjectId

from blog_platform.utils.errors import BlogAPIError, BlogNotFoundError


def parse_object_id(
    value: Any, error_cls: Type[BlogAPIError] = BlogNotFoundError, message: Optional[str] = None
) -> ObjectId:
    """
    Convert `value` to an `ObjectId`.

    A malformed id cannot match any document, so by default it is reported the same way
    as a missing one.

    Raises:
        BlogAPIError: `error_cls(message)` if `value` is not a valid ObjectId.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise error_cls(message)
