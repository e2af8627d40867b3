"""
Render projection for Postpad.

Turns posts into display-safe views. Every piece of post text goes
through escape_html before it reaches a presentation layer.
"""

import os
from datetime import datetime
from typing import Any, Iterable

from postpad.models import Post
from postpad.store import PostStore

HTML_ESCAPES = (
    ("&", "&amp;"),  # must run first
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
    ("\n", "<br>"),
)


def escape_html(text: Any) -> str:
    """Escape text for HTML output; newlines become <br>."""
    result = str(text)
    for raw, escaped in HTML_ESCAPES:
        result = result.replace(raw, escaped)
    return result


def format_count(count: int) -> str:
    """Count label shown above the list."""
    return f"{count} post(s)"


def format_timestamp(value: datetime) -> str:
    """Created time in the local timezone."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def post_view(post: Post) -> dict[str, Any]:
    """Escaped, display-ready fields for one post."""
    return {
        "id": post.id,
        "title": escape_html(post.title),
        "content": escape_html(post.content),
        "created": format_timestamp(post.created_at),
        "status": "Published" if post.published else "Draft",
        "toggle_label": "Unpublish" if post.published else "Publish",
    }


def render_post_html(view: dict[str, Any]) -> str:
    """Article markup for one post view."""
    return f"""
      <article class="post" data-id="{view['id']}">
        <h3>{view['title']}</h3>
        <small>{view['created']} • {view['status']}</small>
        <p>{view['content']}</p>
        <div class="actions">
          <button class="editBtn">Edit</button>
          <button class="deleteBtn">Delete</button>
          <button class="togglePubBtn">{view['toggle_label']}</button>
        </div>
      </article>"""


def render_posts_html(posts: Iterable[Post]) -> str:
    """Markup for a list of posts."""
    return "".join(render_post_html(post_view(post)) for post in posts)


def build_view(store: PostStore, query: str = "") -> dict[str, Any]:
    """Everything a presentation layer needs to draw the list."""
    posts = [post_view(post) for post in store.filter(query)]
    return {
        "posts": posts,
        "count": len(posts),
        "count_label": format_count(len(posts)),
        "editing_id": store.editing_id,
    }


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    BRIGHT_BLACK = "\033[90m"  # Gray
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        if os.environ.get("NO_COLOR"):
            return False
        return True


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


def format_status(post: Post) -> str:
    """Colored publish state marker."""
    if post.published:
        return c("published", Colors.BRIGHT_GREEN)
    return c("draft", Colors.BRIGHT_YELLOW)


def format_post_line(post: Post) -> str:
    """One-line summary for list output."""
    created = c(format_timestamp(post.created_at), Colors.BRIGHT_BLACK)
    return f"{c(str(post.id), Colors.DIM)}  {created}  {format_status(post)}  {c(post.title, Colors.BOLD)}"


def format_post_detail(post: Post) -> str:
    """Full post for the show command."""
    lines = [
        c(post.title, Colors.BOLD),
        f"{c('id:', Colors.DIM)} {post.id}  {format_status(post)}",
        f"{c('created:', Colors.DIM)} {format_timestamp(post.created_at)}"
        f"  {c('updated:', Colors.DIM)} {format_timestamp(post.updated_at)}",
    ]
    if post.content:
        lines.extend(["", post.content])
    return "\n".join(lines)


def format_post_list(posts: list[Post], query: str = "") -> str:
    """List output with the count label on top."""
    lines = [format_count(len(posts))]
    if not posts:
        hint = f' matching "{query.strip()}"' if query.strip() else ""
        lines.append(c(f"No posts{hint}.", Colors.DIM))
    lines.extend(format_post_line(post) for post in posts)
    return "\n".join(lines)
