"""
# Blog Derived Fields

Pure functions that compute the fields a blog document derives from its own content:

- **slug**: URL-safe identifier built from the title, made unique with a numeric suffix.
- **readingTime**: minutes at 200 words per minute, rounded up.
- **publishedAt**: stamped on the first transition to `published`, never changed after.
- **comma lists**: `categories`, `tags` and `keywords` arrive as `"a, b, c"` strings.

None of these touch the database. The repository gathers whatever state they need
(existing slugs, the current `publishedAt`) and calls them explicitly before every write.
"""

import html
import re
from datetime import datetime
from math import ceil
from typing import Any, Dict, Iterable, List, Optional

from blog_platform.models.blog_models import BlogStatus

WORDS_PER_MINUTE = 200
FALLBACK_SLUG = "blog"

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_SLUG_SEPARATORS = re.compile(r"[\s_-]+")


def slugify(title: str) -> str:
    """
    Turn a title into a slug: lowercase, `[a-z0-9-]` only, single hyphens, no leading
    or trailing hyphen.

    Titles are stored HTML-escaped, so entities are decoded first. A title with no usable
    characters (e.g. only punctuation) yields `"blog"`.
    """
    slug = _NON_SLUG_CHARS.sub("", html.unescape(title or "").lower())
    slug = _SLUG_SEPARATORS.sub("-", slug).strip("-")
    return slug or FALLBACK_SLUG


def next_available_slug(base: str, taken: Iterable[str]) -> str:
    """
    Return `base` if free, otherwise the first of `base-2`, `base-3`, ... not in `taken`.

    Args:
        base (str): Slug derived from the title.
        taken (Iterable[str]): Slugs already stored that start with `base`.
    """
    taken = set(taken)
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


def slug_collision_pattern(base: str) -> str:
    """Regex matching `base` and its numbered variants, for the existing-slug lookup."""
    return f"^{re.escape(base)}(-\\d+)?$"


def compute_reading_time(content: Optional[str]) -> int:
    """Reading time in whole minutes, `ceil(words / 200)`. Empty content reads in 0 minutes."""
    words = len((content or "").split())
    return ceil(words / WORDS_PER_MINUTE)


def resolve_published_at(status: str, current: Optional[datetime], now: datetime) -> Optional[datetime]:
    """
    The `publishedAt` a blog should carry after a write.

    Set to `now` only when the blog is published and has never been published before.
    Unpublishing keeps the original date, so republishing does not move it.
    """
    if current is not None:
        return current
    if status == BlogStatus.PUBLISHED.value:
        return now
    return None


def split_csv_list(raw: Optional[Any]) -> List[str]:
    """
    Normalize a comma-delimited string (or a list of strings) into a clean list.

    Items are trimmed and lowercased; blanks are dropped; duplicates are removed keeping
    the first occurrence.
    """
    if not raw:
        return []
    items = raw.split(",") if isinstance(raw, str) else list(raw)

    result: List[str] = []
    for item in items:
        value = str(item).strip().lower()
        if value and value not in result:
            result.append(value)
    return result


def apply_derived_fields(fields: Dict[str, Any], existing: Optional[Dict[str, Any]], now: datetime) -> Dict[str, Any]:
    """
    Add the derived fields implied by a set of changes.

    Args:
        fields (Dict[str, Any]): The camelCase fields being written.
        existing (Optional[Dict[str, Any]]): The stored document, `None` on create.
        now (datetime): Timestamp of the write.

    Returns:
        Dict[str, Any]: `fields` plus `readingTime` (when content changed), `publishedAt`
        (when first published) and `updatedAt`.
    """
    derived = dict(fields)

    if "content" in fields:
        derived["readingTime"] = compute_reading_time(fields["content"])

    status = fields.get("status") or (existing or {}).get("status") or BlogStatus.DRAFT.value
    current_published_at = (existing or {}).get("publishedAt")
    published_at = resolve_published_at(status, current_published_at, now)
    if published_at is not None and published_at != current_published_at:
        derived["publishedAt"] = published_at

    derived["updatedAt"] = now
    return derived
