"""
Post model and the persisted JSON format.

The store writes one JSON array under a single key; every record uses
the camelCase field names older stores were written with.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class Post(BaseModel):
    """One blog entry."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    title: str = Field(min_length=1, description="Trimmed, never empty")
    content: str = Field(default="", description="Trimmed, may be empty")
    published: bool = False
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("title", "content", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _updated_not_before_created(self) -> "Post":
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at
        return self

    def to_record(self) -> dict[str, Any]:
        """JSON-ready record (camelCase keys, ISO-8601 timestamps)."""
        return self.model_dump(mode="json", by_alias=True)


def serialize_posts(posts: Iterable[Post]) -> str:
    """Serialize posts to the persisted JSON array."""
    return json.dumps([post.to_record() for post in posts], ensure_ascii=False)


def deserialize_posts(raw: str | None) -> list[Post]:
    """
    Parse the persisted JSON array.

    Returns an empty list for missing data. Raises ValueError when the
    payload is not JSON or not an array. Records that fail validation
    are skipped with a warning so one bad entry never hides the rest.
    """
    if raw is None or not raw.strip():
        return []

    try:
        data = json.loads(raw)
    except RecursionError:
        raise ValueError("Stored posts are nested too deeply to parse") from None
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of posts, got {type(data).__name__}")

    posts: list[Post] = []
    for index, record in enumerate(data):
        try:
            posts.append(Post.model_validate(record))
        except ValidationError as e:
            logger.warning(f"Skipping malformed post record #{index}: {e.error_count()} error(s)")
    return posts
