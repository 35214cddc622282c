"""
Internal DB subpackage for trackkeys.

External code should import `PreferencesDb` from `trackkeys.core.preferences_db`.
"""

from __future__ import annotations

from .schema import SCHEMA_VERSION, ensure_schema, migrate

__all__ = [
    "SCHEMA_VERSION",
    "ensure_schema",
    "migrate",
]
