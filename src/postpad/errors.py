"""Error taxonomy for Postpad."""


class PostpadError(Exception):
    """Base class for all Postpad errors."""


class ValidationError(PostpadError):
    """Input rejected before any mutation (e.g. empty title)."""


class NotFoundError(PostpadError):
    """An id that does not match any live post."""

    def __init__(self, post_id: int):
        super().__init__(f"Post not found: {post_id}")
        self.post_id = post_id


class PersistenceError(PostpadError):
    """The storage backend failed to read or write.

    Never fatal: the in-memory posts stay authoritative and the next
    mutation writes the full list again.
    """
