"""
Postpad: local-first post manager.

Write, edit, publish and search short text posts kept in
a local key-value store:
- One store per session, no global state
- Soft-failing persistence (memory stays authoritative)
- Escaped render projection for any presentation layer
"""

__version__ = "0.1.0"
