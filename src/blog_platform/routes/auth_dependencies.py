"""
# Authentication Dependencies

FastAPI dependencies that resolve the caller of a blog endpoint.

Access tokens are issued by the user service; this API only **verifies** them. A token
is accepted from the `Authorization: Bearer <token>` header or from the `accessToken`
cookie, decoded with `python-jose` using `ACCESS_TOKEN_SECRET`, and its `_id` claim is
resolved against the `users` collection. Credentials (`password`, `refreshToken`) are
never loaded.

## Dependencies

- `get_current_user`: required authentication. Any failure is a 401.
- `get_optional_user`: the caller if a valid token is present, otherwise `None`. Used by
  endpoints whose output depends on who is asking (author listings).

```python
@router.get("/blogs/my-blogs")
async def my_blogs(current_user: dict = Depends(get_current_user)):
    ...
```

Attributes:
    oauth2_scheme (OAuth2PasswordBearer): Bearer token extractor (non-raising).
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from blog_platform.config import settings
from blog_platform.database.manager import USERS_COLLECTION, db_manager
from blog_platform.managers.logging_manager import get_logger
from blog_platform.utils.errors import BlogUnauthorizedError
from blog_platform.utils.object_ids import parse_object_id

logger = get_logger(prefix="[Auth Dependencies]")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/users/login", auto_error=False)

ACCESS_TOKEN_COOKIE = "accessToken"
USER_PROJECTION = {"password": 0, "refreshToken": 0}


def _extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return bearer or request.cookies.get(ACCESS_TOKEN_COOKIE)


async def resolve_user(token: str) -> Dict[str, Any]:
    """
    Verify an access token and load the user it names.

    Raises:
        BlogUnauthorizedError: Invalid or expired token, missing `_id` claim, or no such user.
    """
    try:
        payload = jwt.decode(token, settings.ACCESS_TOKEN_SECRET.get_secret_value(), algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.info("Rejected access token: %s", e)
        raise BlogUnauthorizedError("Invalid access token") from e

    user_id = parse_object_id(payload.get("_id"), BlogUnauthorizedError, "Invalid access token")
    user = await db_manager.get_collection(USERS_COLLECTION).find_one({"_id": user_id}, USER_PROJECTION)
    if user is None:
        logger.info("Access token refers to unknown user %s", user_id)
        raise BlogUnauthorizedError("Invalid access token")
    return user


async def get_current_user(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)) -> Dict[str, Any]:
    """
    Require an authenticated caller.

    Returns:
        dict: The user document (without credentials).

    Raises:
        BlogUnauthorizedError: If no valid token is presented.
    """
    token = _extract_token(request, bearer)
    if not token:
        raise BlogUnauthorizedError()
    return await resolve_user(token)


async def get_optional_user(
    request: Request, bearer: Optional[str] = Depends(oauth2_scheme)
) -> Optional[Dict[str, Any]]:
    """The authenticated caller, or `None` for anonymous or invalid tokens."""
    token = _extract_token(request, bearer)
    if not token:
        return None
    try:
        return await resolve_user(token)
    except BlogUnauthorizedError:
        return None
