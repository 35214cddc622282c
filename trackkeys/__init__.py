"""
trackkeys - stable path keys for a music player's persisted stores.

Canonicalizes file path keys (POSIX-standardized, Unicode NFC) and migrates
legacy lower-cased keys in the player's JSON caches, weights, queue snapshot
and playlists, once, before anything else reads them.
"""

__version__ = "0.1.0"
__license__ = "GPL-2.0"

from trackkeys.server import TrackKeysServer

__all__ = ["TrackKeysServer", "__version__"]
