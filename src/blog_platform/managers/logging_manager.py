"""
# Logging Manager

Centralized logger factory for the Blog Platform API.

Every module obtains its logger through `get_logger()`, optionally passing a bracketed
component prefix (e.g. `"[Blog Routes]"`, `"[DATABASE]"`). The prefix is prepended to
each message so log lines from different layers can be filtered without configuring a
separate handler per module.

## Usage

```python
from blog_platform.managers.logging_manager import get_logger

logger = get_logger(prefix="[Blog Repository]")
logger.info("Created blog %s for author %s", blog_id, author_id)
```

Messages use lazy `%`-style arguments so formatting only happens when the record is
emitted.
"""

import logging
import sys
from typing import Optional

from blog_platform.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ROOT_LOGGER_NAME = "blog_platform"

_configured = False


class PrefixedLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a component prefix to every message."""

    def process(self, msg, kwargs):
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root_logger() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, settings.DEFAULT_LOG_LEVEL.upper(), logging.INFO))
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.propagate = False
    _configured = True


def get_logger(name: str = ROOT_LOGGER_NAME, prefix: Optional[str] = None) -> PrefixedLoggerAdapter:
    """
    Return a logger for the given name, optionally tagged with a component prefix.

    Args:
        name (str): Logger name. Names outside the `blog_platform` hierarchy are nested
            under it so they share the root handler.
        prefix (Optional[str]): Bracketed component tag prepended to every message.

    Returns:
        PrefixedLoggerAdapter: A logger adapter exposing the standard logging API.
    """
    _configure_root_logger()
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return PrefixedLoggerAdapter(logging.getLogger(name), {"prefix": prefix})
