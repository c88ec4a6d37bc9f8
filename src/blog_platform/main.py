"""
# Blog Platform API - Main Application Module

Entry point of the Blog Platform FastAPI application: it builds the app, wires the
database lifecycle into the lifespan, registers the error envelope handlers and mounts
the blog router under `settings.API_PREFIX`.

## Lifecycle

```
startup:  connect to MongoDB (with retries) → ensure indexes → serve
shutdown: close the Motor client
```

If MongoDB cannot be reached on startup the exception propagates and the process exits;
the API never serves requests without a database.

## Error Envelope

Every failure leaves the API as `{statusCode, message, success: false, errors}`:

| Source | Status |
|---|---|
| `BlogAPIError` subclasses | their `status_code` |
| `HTTPException` | its status, `detail` as message |
| request validation (bad query/body/form values) | 400, field errors listed |
| anything else | 500 `"Internal server error"`, traceback logged |

## Running

```bash
uvicorn blog_platform.main:app --reload
# or
python -m blog_platform.main
```
"""

import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from blog_platform.config import settings
from blog_platform.database.manager import db_manager
from blog_platform.managers.logging_manager import get_logger
from blog_platform.routes.blog import router as blog_router
from blog_platform.utils.api_response import api_error_response, api_response
from blog_platform.utils.errors import BlogAPIError

logger = get_logger(prefix="[Main]")
request_logger = get_logger(prefix="[Requests]")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect to MongoDB and ensure indexes before serving; disconnect on shutdown.

    Args:
        _app (FastAPI): The FastAPI application instance.

    Yields:
        None: Control is yielded to the application to start serving requests.
    """
    startup_start_time = time.time()
    logger.info("Starting Blog Platform API (debug: %s)", settings.DEBUG)

    await db_manager.connect()
    await db_manager.create_indexes()
    logger.info("Startup completed in %.3fs", time.time() - startup_start_time)

    try:
        yield
    finally:
        logger.info("Shutting down Blog Platform API")
        await db_manager.disconnect()


app = FastAPI(
    title="Blog Platform API",
    description="""
    ## Blog Platform API

    REST backend for a blog publishing platform.

    ### Features
    - **Reading**: published feed, full-text search, category and tag listings
    - **Authoring**: drafts, featured images, publish/unpublish
    - **Engagement**: likes, comments, view counts
    """,
    version="1.0.0",
    lifespan=lifespan,
    redirect_slashes=False,
    openapi_tags=[{"name": "Blogs", "description": "Blog reading, authoring and engagement"}],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    request_logger.info(
        "%s %s -> %d (%.3fs)", request.method, request.url.path, response.status_code, time.time() - start_time
    )
    return response


@app.exception_handler(BlogAPIError)
async def blog_api_error_handler(_request: Request, exc: BlogAPIError):
    return api_error_response(exc.status_code, exc.message, exc.errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
    return api_error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
        for error in exc.errors()
    ]
    return api_error_response(400, "Invalid request", errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return api_error_response(500, "Internal server error")


@app.get("/health", tags=["Health"])
async def health():
    """Liveness probe that also reports whether MongoDB answers a ping."""
    database_ok = await db_manager.health_check()
    if not database_ok:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return api_response({"status": "ok", "database": "connected"}, "Service is healthy")


app.include_router(blog_router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    uvicorn.run("blog_platform.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")
