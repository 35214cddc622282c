"""
REST API Routes for trackkeys.

Read-only endpoints for hosts and diagnostics:
- /api/status: last migration report and stored run state
- /api/pathkeys: canonical/legacy/lookup keys for a path
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Query

from trackkeys import __version__
from trackkeys.core import pathkey

if TYPE_CHECKING:
    from fastapi import FastAPI

    from trackkeys.core.migration_service import PathKeyMigrationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])

# Reference set during route registration
_migration_service: PathKeyMigrationService | None = None


def register_api_routes(app: FastAPI, migration_service: PathKeyMigrationService) -> None:
    """
    Register API routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        migration_service: Service whose reports are exposed
    """
    global _migration_service
    _migration_service = migration_service
    app.include_router(router)


@router.get("/api/status")
async def server_status() -> dict[str, Any]:
    """Migration report of this process and the persisted run state."""
    if _migration_service is None:
        raise HTTPException(status_code=503, detail="Server not initialized")

    last_run = _migration_service.last_run
    migration: dict[str, Any] | None = None
    if last_run is not None:
        migration = {"didRun": last_run.did_run, **last_run.result.to_dict()}

    stored = await _migration_service.stored_state()
    state: dict[str, Any] | None = None
    if stored is not None:
        state = {
            "version": stored.version,
            "signatures": {name: sig.to_dict() for name, sig in stored.signatures.items()},
        }

    return {
        "server": "trackkeys",
        "version": __version__,
        "base_dir": str(_migration_service.base_dir),
        "migration": migration,
        "state": state,
    }


@router.get("/api/pathkeys")
async def path_keys(path: str = Query(..., min_length=1)) -> dict[str, Any]:
    """Keys a store reader should probe for `path`, most trustworthy first."""
    return {
        "path": path,
        "canonical": pathkey.canonical(path),
        "legacy": pathkey.legacy(path),
        "lookup_keys": pathkey.lookup_keys(path),
    }
