"""
Response envelope helpers.

Every endpoint answers with `{statusCode, data, message, success}`; failures use
`{statusCode, message, success: false, errors: [...]}`. Documents coming from Motor
contain `ObjectId` values, which are rendered as hex strings.
"""

from typing import Any, List, Optional

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from blog_platform.models.blog_models import ApiErrorResponse, ApiResponse


def to_jsonable(value: Any) -> Any:
    """Convert a Motor document (or list of them) into JSON-compatible data."""
    return jsonable_encoder(value, custom_encoder={ObjectId: str})


def api_response(data: Any, message: str = "Success", status_code: int = 200) -> JSONResponse:
    body = ApiResponse(statusCode=status_code, data=to_jsonable(data), message=message, success=status_code < 400)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def api_error_response(status_code: int, message: str, errors: Optional[List[Any]] = None) -> JSONResponse:
    body = ApiErrorResponse(statusCode=status_code, message=message, errors=to_jsonable(errors or []))
    return JSONResponse(status_code=status_code, content=body.model_dump())
