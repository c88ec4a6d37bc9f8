"""
# Configuration Module

This module provides the **centralized configuration** for the Blog Platform API.
Settings are declared once on a Pydantic `BaseSettings` model and resolved from the
environment, with an optional dotenv-style file layered underneath.

## Configuration Hierarchy

1. **Environment variables** (highest priority), e.g. `export MONGODB_URL="..."`
2. **Custom config file** pointed to by `BLOG_PLATFORM_CONFIG_PATH`
3. **`.env` file** in the project root
4. **Defaults** declared on `Settings` (lowest priority)

If no file is found the application runs in environment-only mode.

## Secret Handling

Credentials (`ACCESS_TOKEN_SECRET`, `MONGODB_PASSWORD`, `CLOUDINARY_API_SECRET`) are
typed as `SecretStr` so they never end up in logs or reprs. Call
`get_secret_value()` at the point of use.

## Usage

```python
from blog_platform.config import settings

client = AsyncIOMotorClient(settings.MONGODB_URL)
page_size = settings.DEFAULT_PAGE_SIZE
```

Attributes:
    settings (Settings): The process-wide settings instance.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "BLOG_PLATFORM_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determine the configuration file path.

    Precedence:
    1.  `BLOG_PLATFORM_CONFIG_PATH` (if set and the file exists).
    2.  `.env` in the project root.
    3.  `None`, which means environment variables only.

    Returns:
        Optional[str]: The path of the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, API prefix, CORS.
    *   **Database**: MongoDB connection details and timeouts.
    *   **Security**: Access-token verification secret and algorithm.
    *   **Media**: Cloudinary credentials and upload limits.
    *   **Pagination**: Default and maximum page sizes.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: str = "http://localhost:3000"  # Comma-separated allowed origins

    # Access token verification (tokens are issued by the user service)
    ACCESS_TOKEN_SECRET: SecretStr = SecretStr("")
    ALGORITHM: str = "HS256"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "blog_platform"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_MAX_POOL_SIZE: int = 50
    MONGODB_MIN_POOL_SIZE: int = 5
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Cloudinary (featured images)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: SecretStr = SecretStr("")
    CLOUDINARY_FOLDER: Optional[str] = "blogs"
    IMAGE_UPLOAD_TIMEOUT: float = 30.0
    MAX_IMAGE_SIZE_BYTES: int = 5 * 1024 * 1024

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Logging
    DEFAULT_LOG_LEVEL: str = "INFO"

    @field_validator("DEFAULT_PAGE_SIZE", "MAX_PAGE_SIZE")
    @classmethod
    def validate_page_size(cls, v):
        if v < 1:
            raise ValueError("Page sizes must be positive")
        return v

    @field_validator("API_PREFIX")
    @classmethod
    def validate_api_prefix(cls, v):
        v = v.strip()
        if v and not v.startswith("/"):
            v = "/" + v
        return v.rstrip("/")

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET.get_secret_value()
        )


settings = Settings()
