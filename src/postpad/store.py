"""
PostStore: the post list, edit mode, and every mutation.

One store per session. Nothing here is module-level state, so tests
and callers can run as many independent stores as they like.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterator, NamedTuple

from postpad.errors import NotFoundError, PersistenceError, ValidationError
from postpad.ids import IdGenerator
from postpad.models import Post, deserialize_posts, serialize_posts, utcnow
from postpad.storage import KeyValueBackend, MemoryBackend, open_backend

logger = logging.getLogger(__name__)

DEFAULT_KEY = "posts"
DELETE_PROMPT = "Delete this post?"
UNSAVED_WARNING = "Changes may not survive the end of this session"


class Result(NamedTuple):
    """Outcome of a mutation.

    ``post`` is the created/updated/removed post (None for a no-op),
    ``error`` a ValidationError when input was rejected, and
    ``warning`` a PersistenceError when the write failed.
    """

    post: Post | None = None
    error: ValidationError | None = None
    warning: PersistenceError | None = None

    @property
    def ok(self) -> bool:
        return self.post is not None and self.error is None


class PostStore:
    """Owns the ordered posts and the edit-mode flag."""

    def __init__(
        self,
        backend: KeyValueBackend | None = None,
        key: str = DEFAULT_KEY,
        clock: Callable[[], datetime] = utcnow,
        ids: IdGenerator | None = None,
    ):
        self.backend = backend if backend is not None else MemoryBackend()
        self.key = key
        self.clock = clock
        self.ids = ids or IdGenerator()
        self.posts: list[Post] = []
        self.editing_id: int | None = None
        self.last_error: PersistenceError | None = None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "PostStore":
        """Build a store on the configured backend (not yet loaded)."""
        storage = config.get("storage", {})
        return cls(open_backend(config), key=storage.get("key", DEFAULT_KEY))

    # --- persistence -------------------------------------------------

    def load(self) -> list[Post]:
        """
        Read posts from the backend.

        Never raises: missing, unreadable or malformed data leaves an
        empty store. Sorts newest first and repairs duplicate ids.
        """
        try:
            raw = self.backend.get(self.key)
            posts = deserialize_posts(raw)
        except PersistenceError as e:
            logger.warning(f"Could not read posts, starting empty: {e}")
            self.last_error = e
            posts = []
        except ValueError as e:
            logger.warning(f"Stored posts are malformed, starting empty: {e}")
            posts = []

        posts.sort(key=lambda p: p.created_at, reverse=True)
        self.posts = posts
        self.editing_id = None

        for post in self.posts:
            self.ids.observe(post.id)
        if self._migrate_duplicate_ids():
            self._persist()

        logger.info(f"Loaded {len(self.posts)} posts from {self.backend.name}:{self.key}")
        return self.posts

    def _migrate_duplicate_ids(self) -> int:
        """Give every repeated id a fresh one. Returns how many changed."""
        seen: set[int] = set()
        changed = 0
        for post in self.posts:
            if post.id in seen:
                old_id = post.id
                post.id = self.ids.next()
                logger.warning(f"Duplicate post id {old_id} reassigned to {post.id}")
                changed += 1
            seen.add(post.id)
        return changed

    def _persist(self) -> PersistenceError | None:
        """Write the full list. Returns the failure instead of raising."""
        try:
            self.backend.set(self.key, serialize_posts(self.posts))
        except PersistenceError as e:
            logger.warning(f"Failed to persist {len(self.posts)} posts: {e}")
            self.last_error = e
            return e
        self.last_error = None
        return None

    # --- lookups -----------------------------------------------------

    def _find(self, post_id: int) -> Post | None:
        for post in self.posts:
            if post.id == post_id:
                return post
        return None

    def get(self, post_id: int) -> Post:
        """Return a post by id or raise NotFoundError."""
        post = self._find(post_id)
        if post is None:
            raise NotFoundError(post_id)
        return post

    def filter(self, query: str = "") -> Iterator[Post]:
        """Lazily yield posts whose title or content contains query.

        Case-insensitive; an empty query yields everything in stored
        order. Iterates a snapshot taken at call time.
        """
        needle = (query or "").strip().lower()
        snapshot = tuple(self.posts)
        if not needle:
            return iter(snapshot)
        return (
            post for post in snapshot
            if needle in post.title.lower() or needle in post.content.lower()
        )

    def count(self, query: str = "") -> int:
        """Number of posts visible for a query."""
        return sum(1 for _ in self.filter(query))

    def stats(self) -> dict[str, int]:
        """Post totals by publish state."""
        published = sum(1 for post in self.posts if post.published)
        return {
            "total": len(self.posts),
            "published": published,
            "drafts": len(self.posts) - published,
        }

    # --- edit mode ---------------------------------------------------

    @property
    def editing(self) -> bool:
        return self.editing_id is not None

    def start_edit(self, post_id: int) -> Post | None:
        """Enter edit mode for a post. Returns it, or None if unknown."""
        post = self._find(post_id)
        if post is None:
            return None
        self.editing_id = post_id
        return post

    def cancel_edit(self) -> None:
        """Leave edit mode."""
        self.editing_id = None

    # --- mutations ---------------------------------------------------

    def _touch(self, post: Post) -> None:
        # updatedAt never moves backwards, even if the clock does
        post.updated_at = max(self.clock(), post.updated_at)

    def save(self, title: str, content: str = "", published: bool = False) -> Result:
        """
        Create a post, or update the one being edited.

        A stale editing_id (post deleted meanwhile) falls through to
        creating a new post. On success the store persists and leaves
        edit mode; on a rejected title nothing changes.
        """
        title = (title or "").strip()
        content = (content or "").strip()

        if not title:
            return Result(error=ValidationError("Enter a title"))

        post = self._find(self.editing_id) if self.editing_id is not None else None
        if post is not None:
            post.title = title
            post.content = content
            post.published = bool(published)
            self._touch(post)
            logger.info(f"Updated post {post.id}")
        else:
            now = self.clock()
            post = Post(
                id=self.ids.next(),
                title=title,
                content=content,
                published=bool(published),
                created_at=now,
                updated_at=now,
            )
            self.posts.insert(0, post)
            logger.info(f"Created post {post.id}")

        warning = self._persist()
        self.editing_id = None
        return Result(post=post, warning=warning)

    def delete_prompt(self, post_id: int) -> str | None:
        """Confirmation text to show before delete, None if nothing to delete."""
        if self._find(post_id) is None:
            return None
        return DELETE_PROMPT

    def delete(self, post_id: int) -> Result:
        """Remove a post. Callers confirm with the user first."""
        post = self._find(post_id)
        if post is None:
            return Result()

        self.posts = [p for p in self.posts if p.id != post_id]
        if self.editing_id == post_id:
            self.editing_id = None
        logger.info(f"Deleted post {post_id}")
        return Result(post=post, warning=self._persist())

    def toggle_publish(self, post_id: int) -> Result:
        """Flip a post between published and draft."""
        post = self._find(post_id)
        if post is None:
            return Result()

        post.published = not post.published
        self._touch(post)
        logger.info(f"Post {post_id} {'published' if post.published else 'unpublished'}")
        return Result(post=post, warning=self._persist())
