"""API router exposing instance snapshots, transcript history and terminal launch."""
from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query

from ccwatch import config
from ccwatch.models import Instance, OpenTerminalRequest, TranscriptLine
from ccwatch.parsers.session_index import default_projects_dir
from ccwatch.parsers.transcripts import tail
from ccwatch.services.instances import build_instances
from ccwatch.services.terminal_launcher import TerminalLaunchError, open_in_terminal

instances_router = APIRouter(prefix="/api/instances", tags=["instances"])


@instances_router.get("", response_model=list[Instance])
def list_instances():
    """Snapshot of every live and offline Claude instance."""
    return build_instances()


@instances_router.post("/refresh", response_model=list[Instance])
def refresh_instances():
    return build_instances()


@instances_router.get("/history", response_model=list[TranscriptLine])
def get_instance_history(
    path: str = Query(..., min_length=1),
    limit: int = Query(config.HISTORY_LIMIT_DEFAULT, ge=1, le=5000),
):
    """Tail of one session transcript, oldest line first.

    Only transcripts under the Claude projects directory may be read.
    """
    try:
        resolved = Path(path).expanduser().resolve()
        allowed = resolved.is_relative_to(default_projects_dir().resolve())
    except (OSError, ValueError, RuntimeError):
        allowed = False
    if not allowed:
        raise HTTPException(status_code=403, detail="Transcript path is outside the Claude projects directory")
    return tail(resolved, limit)


@instances_router.post("/open-terminal")
def open_terminal(request: OpenTerminalRequest):
    try:
        open_in_terminal(request.workingDirectory, request.sessionId)
    except TerminalLaunchError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "ok"}
