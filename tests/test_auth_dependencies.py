"""
Tests for access-token verification dependencies.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from jose import jwt
from starlette.requests import Request

from blog_platform.routes.auth_dependencies import get_current_user, get_optional_user, resolve_user
from blog_platform.utils.errors import BlogUnauthorizedError

SECRET = "test-secret"
USER_ID = ObjectId()


def _token(claims=None, secret=SECRET, expires_in=timedelta(minutes=15)):
    payload = {"_id": str(USER_ID), "exp": datetime.now(timezone.utc) + expires_in}
    payload.update(claims or {})
    return jwt.encode(payload, secret, algorithm="HS256")


def _request(cookie=None):
    headers = [(b"cookie", f"accessToken={cookie}".encode())] if cookie else []
    return Request({"type": "http", "headers": headers})


@pytest.fixture
def mock_settings():
    with patch("blog_platform.routes.auth_dependencies.settings") as mock:
        mock.ACCESS_TOKEN_SECRET = MagicMock()
        mock.ACCESS_TOKEN_SECRET.get_secret_value.return_value = SECRET
        mock.ALGORITHM = "HS256"
        yield mock


@pytest.fixture
def users():
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value={"_id": USER_ID, "username": "writer"})
    with patch("blog_platform.routes.auth_dependencies.db_manager") as mock:
        mock.get_collection.return_value = collection
        yield collection


@pytest.mark.asyncio
async def test_resolve_user_valid_token(mock_settings, users):
    user = await resolve_user(_token())

    assert user["_id"] == USER_ID
    users.find_one.assert_awaited_once_with({"_id": USER_ID}, {"password": 0, "refreshToken": 0})


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "token",
    [
        _token(expires_in=timedelta(minutes=-1)),
        _token(secret="other-secret"),
        _token(claims={"_id": "not-an-object-id"}),
        "garbage",
    ],
)
async def test_resolve_user_rejects_bad_tokens(mock_settings, users, token):
    with pytest.raises(BlogUnauthorizedError):
        await resolve_user(token)


@pytest.mark.asyncio
async def test_resolve_user_unknown_user(mock_settings, users):
    users.find_one.return_value = None

    with pytest.raises(BlogUnauthorizedError):
        await resolve_user(_token())


@pytest.mark.asyncio
async def test_get_current_user_without_token(mock_settings, users):
    with pytest.raises(BlogUnauthorizedError):
        await get_current_user(_request(), None)

    users.find_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_current_user_reads_cookie(mock_settings, users):
    user = await get_current_user(_request(cookie=_token()), None)

    assert user["username"] == "writer"


@pytest.mark.asyncio
async def test_get_current_user_prefers_bearer(mock_settings, users):
    user = await get_current_user(_request(cookie="garbage"), _token())

    assert user["_id"] == USER_ID


@pytest.mark.asyncio
async def test_get_optional_user(mock_settings, users):
    assert await get_optional_user(_request(), None) is None
    assert await get_optional_user(_request(), "garbage") is None
    assert (await get_optional_user(_request(), _token()))["_id"] == USER_ID
