"""
Health check module for Postpad.

Reports storage status and data integrity.
"""

import json
from collections import Counter
from typing import Any

from postpad.config import load_config
from postpad.errors import PersistenceError
from postpad.storage import KeyValueBackend, open_backend


def check_storage(backend: KeyValueBackend, key: str) -> tuple[str, str]:
    """Check the backend can be read."""
    try:
        raw = backend.get(key)
    except PersistenceError as e:
        return "✗", f"Error: {e}"
    if raw is None:
        return "✓", f"OK ({backend.name}, empty)"
    return "✓", f"OK ({backend.name}, {len(raw)} chars)"


def _read_records(backend: KeyValueBackend, key: str) -> list[Any] | None:
    raw = backend.get(key)
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, list) else None


def check_posts(backend: KeyValueBackend, key: str) -> tuple[str, str]:
    """Check the stored array parses and count its posts."""
    try:
        records = _read_records(backend, key)
    except PersistenceError:
        return "-", "N/A"
    if records is None:
        return "✗", "Malformed (will load as empty)"

    published = sum(1 for r in records if isinstance(r, dict) and r.get("published"))
    return "✓", f"OK ({len(records)} posts, {published} published)"


def check_ids(backend: KeyValueBackend, key: str) -> tuple[str, str]:
    """Check for repeated ids (repaired on next load)."""
    try:
        records = _read_records(backend, key)
    except PersistenceError:
        return "-", "N/A"
    if records is None:
        return "-", "N/A"

    counts = Counter(r.get("id") for r in records if isinstance(r, dict))
    duplicates = sum(n - 1 for n in counts.values() if n > 1)
    if duplicates == 0:
        return "✓", "Unique"
    return "!", f"{duplicates} duplicate(s), repaired on next load"


def run_health_check(config: dict[str, Any] | None = None) -> dict[str, tuple[str, str]]:
    """Run all health checks."""
    config = config or load_config()
    key = config.get("storage", {}).get("key", "posts")
    try:
        backend = open_backend(config)
    except (PersistenceError, ValueError) as e:
        return {"Storage": ("✗", f"Error: {e}")}

    return {
        "Storage": check_storage(backend, key),
        "Posts": check_posts(backend, key),
        "Ids": check_ids(backend, key),
    }


def format_health_report(checks: dict[str, tuple[str, str]]) -> str:
    """Format health check results."""
    lines = ["Postpad Health Check", "-" * 40]

    for name, (status, message) in checks.items():
        lines.append(f"{status} {name}: {message}")

    return "\n".join(lines)
