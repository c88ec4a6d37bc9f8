"""
# Blog Query Builder

Every list-shaped read of the blog API (the public feed, search, category and tag
listings, author listings) is the same aggregation with different knobs. `BlogQuery`
captures those knobs as an immutable value and renders them into a pipeline:

```
$match (filters, optional $text)
  → $addFields score          (text search only)
  → $lookup users → author    (username, fullName, avatar)
  → $unwind author            (orphaned blogs are dropped)
  → $addFields likeCount, commentCount
  → $project                  (hide internal fields)
  → $facet { docs: [$sort, $skip, $limit], totalDocs: [$count] }
```

Each modifier returns a new `BlogQuery`, so a base query can be shared and refined:

```python
base = BlogQuery().published(now).page_of(2, 10)
by_tag = base.where(tags="python").sorted_by("publishedAt")
pipeline = by_tag.paginated_pipeline()
```

Single-blog reads need more than the list projection (commenters and likers are
populated too); `detail_pipeline()` builds that variant.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from blog_platform.database.manager import USERS_COLLECTION
from blog_platform.models.blog_models import BlogStatus, PaginatedBlogs

AUTHOR_PROJECTION = {"username": 1, "fullName": 1, "avatar": 1}
HIDDEN_FIELDS = {"featuredImagePublicId": 0}

DESCENDING = -1


def _user_lookup(local_field: str, target: str) -> Dict[str, Any]:
    return {
        "$lookup": {
            "from": USERS_COLLECTION,
            "localField": local_field,
            "foreignField": "_id",
            "as": target,
            "pipeline": [{"$project": AUTHOR_PROJECTION}],
        }
    }


def _count_fields() -> Dict[str, Any]:
    return {
        "$addFields": {
            "likeCount": {"$size": {"$ifNull": ["$likes", []]}},
            "commentCount": {"$size": {"$ifNull": ["$comments", []]}},
        }
    }


@dataclass(frozen=True)
class BlogQuery:
    """
    Immutable description of a paginated blog listing.

    Attributes:
        match (Dict[str, Any]): Equality/range filters on stored fields.
        text (Optional[str]): Full-text search terms; switches the sort to relevance.
        sort (Tuple[Tuple[str, int], ...]): Sort keys, applied after the text score.
        page (int): 1-indexed page number.
        limit (int): Page size.
    """

    match: Dict[str, Any] = field(default_factory=dict)
    text: Optional[str] = None
    sort: Tuple[Tuple[str, int], ...] = (("createdAt", DESCENDING),)
    page: int = 1
    limit: int = 10

    def where(self, **conditions: Any) -> "BlogQuery":
        return replace(self, match={**self.match, **conditions})

    def published(self, now: datetime) -> "BlogQuery":
        """Restrict to blogs that are published and whose publication date has passed."""
        return self.where(status=BlogStatus.PUBLISHED.value, publishedAt={"$lte": now})

    def search(self, text: str) -> "BlogQuery":
        return replace(self, text=text)

    def sorted_by(self, sort_field: str, direction: int = DESCENDING) -> "BlogQuery":
        return replace(self, sort=((sort_field, direction),))

    def page_of(self, page: int, limit: int) -> "BlogQuery":
        return replace(self, page=max(1, page), limit=max(1, limit))

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def _match_stage(self) -> Dict[str, Any]:
        conditions = dict(self.match)
        if self.text:
            conditions["$text"] = {"$search": self.text}
        return {"$match": conditions}

    def _sort_stage(self) -> Dict[str, Any]:
        keys: Dict[str, int] = {}
        if self.text:
            keys["score"] = DESCENDING
        for sort_field, direction in self.sort:
            keys[sort_field] = direction
        keys.setdefault("_id", DESCENDING)
        return {"$sort": keys}

    def pipeline(self) -> List[Dict[str, Any]]:
        """Stages shared by the page and the total count (everything but sort and slice)."""
        stages: List[Dict[str, Any]] = [self._match_stage()]
        if self.text:
            stages.append({"$addFields": {"score": {"$meta": "textScore"}}})
        stages.extend(
            [
                _user_lookup("author", "author"),
                {"$unwind": "$author"},
                _count_fields(),
                {"$project": HIDDEN_FIELDS},
            ]
        )
        return stages

    def paginated_pipeline(self) -> List[Dict[str, Any]]:
        """Full pipeline returning one document `{docs: [...], totalDocs: [{count}]}`."""
        return self.pipeline() + [
            {
                "$facet": {
                    "docs": [self._sort_stage(), {"$skip": self.skip}, {"$limit": self.limit}],
                    "totalDocs": [{"$count": "count"}],
                }
            }
        ]

    def to_page(self, facet_result: Optional[Dict[str, Any]]) -> PaginatedBlogs:
        """Turn the `$facet` output into the paginated response shape."""
        docs = (facet_result or {}).get("docs", [])
        counts = (facet_result or {}).get("totalDocs", [])
        total = counts[0]["count"] if counts else 0
        return PaginatedBlogs.from_page(docs, total, self.page, self.limit)


def detail_pipeline(match: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Pipeline for a single blog with every reference populated.

    The author, the users in `likes` and the author of each comment are replaced by
    their public summary. A blog whose author no longer exists is still returned,
    with `author` left null.
    """
    return [
        {"$match": match},
        {"$limit": 1},
        _count_fields(),
        _user_lookup("author", "author"),
        {"$unwind": {"path": "$author", "preserveNullAndEmptyArrays": True}},
        _user_lookup("likes", "likes"),
        _user_lookup("comments.user", "commentAuthors"),
        {
            "$addFields": {
                "comments": {
                    "$map": {
                        "input": {"$ifNull": ["$comments", []]},
                        "as": "comment",
                        "in": {
                            "$mergeObjects": [
                                "$$comment",
                                {
                                    "user": {
                                        "$arrayElemAt": [
                                            {
                                                "$filter": {
                                                    "input": "$commentAuthors",
                                                    "as": "commenter",
                                                    "cond": {"$eq": ["$$commenter._id", "$$comment.user"]},
                                                }
                                            },
                                            0,
                                        ]
                                    }
                                },
                            ]
                        },
                    }
                }
            }
        },
        {"$project": {**HIDDEN_FIELDS, "commentAuthors": 0}},
    ]
