"""
CLI for Postpad.

Minimal CLI using stdlib argument handling. It is the terminal
presentation layer: it turns commands into PostStore calls and prints
what the store projects back.

Usage:
    postpad new --title "Hello" --content "World"
    postpad list [query]
    postpad --help
"""

import sys
from typing import Callable

from postpad.errors import PostpadError


def print_help() -> None:
    """Print help message."""
    print("""postpad - local-first post manager

Usage:
    postpad new --title T [--content C] [--publish]
                                    Write a new post (draft by default)

Commands:
    postpad list [query] [--html]   List posts, newest first, optionally filtered
    postpad show <id>               Show one post
    postpad edit <id> [--title T] [--content C] [--publish|--draft]
                                    Edit a post (unset fields are kept)
    postpad toggle <id>             Publish or unpublish a post
    postpad delete <id> [--yes]     Delete a post (asks first)
    postpad stats                   Show post totals
    postpad health                  Check storage status

Options:
    postpad --help, -h              Show this help
    postpad --version, -v           Show version

Examples:
    postpad new -t "Hello" -c "First post" --publish
    postpad list redis
    postpad toggle 1768427187928""")


def print_version() -> None:
    """Print version."""
    from postpad import __version__
    print(f"postpad {__version__}")


def open_store():
    """Load config, set up logging and return a loaded PostStore."""
    from postpad.config import load_config, setup_logging
    from postpad.store import PostStore

    config = load_config()
    setup_logging(config)
    store = PostStore.from_config(config)
    store.load()
    return store


def parse_options(
    args: list[str],
    valued: dict[str, str],
    flags: dict[str, str],
) -> tuple[dict[str, str | bool], list[str]]:
    """
    Split args into options and positionals.

    ``valued`` and ``flags`` map every accepted spelling (``--title``,
    ``-t``) to the option name it sets.
    """
    options: dict[str, str | bool] = {}
    positional: list[str] = []

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in valued:
            if i + 1 >= len(args):
                raise ValueError(f"{arg} needs a value")
            options[valued[arg]] = args[i + 1]
            i += 2
        elif arg in flags:
            options[flags[arg]] = True
            i += 1
        else:
            positional.append(arg)
            i += 1

    return options, positional


def parse_id(args: list[str]) -> int:
    """First positional arg as a post id."""
    if not args:
        raise ValueError("Missing post id")
    try:
        return int(args[0])
    except ValueError:
        raise ValueError(f"Invalid post id: {args[0]}") from None


def report(result, message: str) -> int:
    """Print a mutation result. Returns the exit code."""
    if result.error is not None:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1
    if result.warning is not None:
        from postpad.store import UNSAVED_WARNING
        print(f"Warning: {result.warning}. {UNSAVED_WARNING}.", file=sys.stderr)
    print(message)
    return 0


POST_FIELDS = {"--title": "title", "-t": "title", "--content": "content", "-c": "content"}


def cmd_new(args: list[str]) -> int:
    """Write a new post."""
    options, positional = parse_options(
        args, POST_FIELDS, {"--publish": "publish", "-p": "publish"}
    )
    title = options.get("title") or " ".join(positional)

    store = open_store()
    result = store.save(str(title), str(options.get("content", "")), bool(options.get("publish")))
    if result.post is None:
        return report(result, "")
    return report(result, f"Saved: {result.post.id}")


def cmd_edit(args: list[str]) -> int:
    """Edit an existing post."""
    options, positional = parse_options(
        args, POST_FIELDS, {"--publish": "publish", "--draft": "draft"}
    )
    post_id = parse_id(positional)

    store = open_store()
    post = store.start_edit(post_id)
    if post is None:
        print(f"Not found: {post_id}", file=sys.stderr)
        return 1

    published = post.published
    if options.get("publish"):
        published = True
    elif options.get("draft"):
        published = False

    result = store.save(
        str(options.get("title", post.title)),
        str(options.get("content", post.content)),
        published,
    )
    return report(result, f"Updated: {post_id}")


def cmd_list(args: list[str]) -> int:
    """List posts, optionally filtered by a query."""
    from postpad.render import build_view, format_post_list, render_posts_html

    options, positional = parse_options(args, {}, {"--html": "html"})
    query = " ".join(positional)

    store = open_store()
    if options.get("html"):
        view = build_view(store, query)
        print(view["count_label"])
        print(render_posts_html(store.filter(query)))
        return 0

    print(format_post_list(list(store.filter(query)), query))
    return 0


def cmd_show(args: list[str]) -> int:
    """Show one post."""
    from postpad.render import format_post_detail

    post_id = parse_id(args)
    store = open_store()
    print(format_post_detail(store.get(post_id)))
    return 0


def cmd_toggle(args: list[str]) -> int:
    """Publish or unpublish a post."""
    post_id = parse_id(args)
    store = open_store()
    result = store.toggle_publish(post_id)
    if result.post is None:
        print(f"Not found: {post_id}", file=sys.stderr)
        return 1

    state = "Published" if result.post.published else "Unpublished"
    return report(result, f"{state}: {post_id}")


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def cmd_delete(args: list[str]) -> int:
    """Delete a post after confirmation."""
    options, positional = parse_options(args, {}, {"--yes": "yes", "-y": "yes"})
    post_id = parse_id(positional)

    store = open_store()
    prompt = store.delete_prompt(post_id)
    if prompt is None:
        print(f"Not found: {post_id}", file=sys.stderr)
        return 1

    if not options.get("yes") and not confirm(prompt):
        print("Cancelled.")
        return 0

    return report(store.delete(post_id), f"Deleted: {post_id}")


def cmd_stats(args: list[str]) -> int:
    """Show post totals."""
    stats = open_store().stats()

    print("Postpad Statistics")
    print("-" * 30)
    print(f"Total posts: {stats['total']}")
    print(f"  published: {stats['published']}")
    print(f"  drafts: {stats['drafts']}")
    return 0


def cmd_health(args: list[str]) -> int:
    """Show health report."""
    from postpad.health import format_health_report, run_health_check

    checks = run_health_check()
    print(format_health_report(checks))
    return 1 if any(status == "✗" for status, _ in checks.values()) else 0


COMMANDS: dict[str, Callable[[list[str]], int]] = {
    "new": cmd_new,
    "edit": cmd_edit,
    "list": cmd_list,
    "show": cmd_show,
    "toggle": cmd_toggle,
    "delete": cmd_delete,
    "stats": cmd_stats,
    "health": cmd_health,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = sys.argv[1:] if argv is None else argv

    if not args or args[0] in ("--help", "-h", "help"):
        print_help()
        return 0

    if args[0] in ("--version", "-v", "version"):
        print_version()
        return 0

    handler = COMMANDS.get(args[0])
    if handler is None:
        print(f"Unknown command: {args[0]}", file=sys.stderr)
        print_help()
        return 1

    try:
        return handler(args[1:])
    except (PostpadError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
