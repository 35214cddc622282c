"""
trackkeys Web Layer.

Read-only HTTP reporting surface for hosts and diagnostics.
"""

from trackkeys.web.server import WebServer

__all__ = [
    "WebServer",
]
