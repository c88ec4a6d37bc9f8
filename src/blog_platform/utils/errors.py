"""
# Blog API Errors

Domain exceptions raised by the repository, query service and auth dependencies.
Each carries the HTTP status it maps to so the application-level exception handler
can render the error envelope without a lookup table:

| Exception | Status |
|---|---|
| `BlogValidationError` | 400 |
| `BlogUnauthorizedError` | 401 |
| `BlogForbiddenError` | 403 |
| `BlogNotFoundError` | 404 |

Anything that is not a `BlogAPIError` is treated as unexpected and surfaces as a 500.
"""

from typing import Any, List, Optional


class BlogAPIError(Exception):
    """Base class for errors that map to a client-facing HTTP status."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class BlogValidationError(BlogAPIError):
    status_code = 400
    default_message = "Invalid request"


class BlogUnauthorizedError(BlogAPIError):
    status_code = 401
    default_message = "Unauthorized request"


class BlogForbiddenError(BlogAPIError):
    status_code = 403
    default_message = "You are not allowed to perform this action"


class BlogNotFoundError(BlogAPIError):
    status_code = 404
    default_message = "Blog not found"
