"""Join live CLI processes with session history into Instance snapshots."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Callable, Optional

from ccwatch import config, process_scanner
from ccwatch.models import Instance, InstanceMetrics, ProcessRecord, SessionDescriptor, TranscriptLine
from ccwatch.parsers import session_index, transcripts

logger = logging.getLogger("ccwatch")

ProcessSource = Callable[[], list[ProcessRecord]]
SessionSource = Callable[[], list[SessionDescriptor]]
TailReader = Callable[[str, int], list[TranscriptLine]]
Clock = Callable[[], datetime]

_UNKNOWN_PROJECT = "Unknown"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def project_name_for(path: str) -> str:
    return PurePath(path).name or _UNKNOWN_PROJECT


def display_name_for(first_prompt: Optional[str], fallback: str) -> str:
    if first_prompt is None:
        return fallback
    limit = config.DISPLAY_NAME_MAX_CHARS
    if len(first_prompt) > limit:
        return first_prompt[:limit] + "..."
    return first_prompt


def status_for(process: ProcessRecord, threshold: float = config.WORKING_CPU_THRESHOLD) -> str:
    return "working" if process.cpuPercent > threshold else "idle"


def group_by_project(sessions: list[SessionDescriptor]) -> dict[str, list[SessionDescriptor]]:
    """Group descriptors by projectPath, keeping input order within each group."""
    groups: dict[str, list[SessionDescriptor]] = {}
    for session in sessions:
        groups.setdefault(session.projectPath, []).append(session)
    return groups


def _live_instance(
    process: ProcessRecord,
    session: Optional[SessionDescriptor],
    read_tail: TailReader,
    now_iso: str,
    tail_lines: int,
) -> Instance:
    project_name = project_name_for(process.workingDirectory)
    first_prompt = session.firstPromptPreview if session else None
    branch = session.gitBranch if session else None

    return Instance(
        id=f"proc-{process.pid}",
        displayName=display_name_for(first_prompt, project_name),
        modelLabel=config.MODEL_LABEL,
        status=status_for(process),
        projectName=project_name,
        branch=branch or config.DEFAULT_BRANCH,
        workingDirectory=process.workingDirectory,
        currentTask=first_prompt,
        metrics=InstanceMetrics(),
        recentLines=read_tail(session.logFilePath, tail_lines) if session else [],
        # Process start time is not read; both stamps are the query time.
        startedAt=now_iso,
        lastActivityAt=now_iso,
        pid=process.pid,
        sessionId=session.sessionId if session else None,
        logFilePath=session.logFilePath if session else None,
    )


def _offline_instance(project_path: str, session: SessionDescriptor) -> Instance:
    project_name = project_name_for(project_path)
    return Instance(
        id=session.sessionId,
        displayName=display_name_for(session.firstPromptPreview, project_name),
        modelLabel=config.MODEL_LABEL,
        status="offline",
        projectName=project_name,
        branch=session.gitBranch or config.DEFAULT_BRANCH,
        workingDirectory=project_path,
        currentTask=session.firstPromptPreview,
        metrics=InstanceMetrics(),
        recentLines=[],
        startedAt=session.createdAt,
        lastActivityAt=session.modifiedAt,
        pid=None,
        sessionId=session.sessionId,
        logFilePath=session.logFilePath,
    )


def build_instances(
    scan_processes: ProcessSource = process_scanner.scan,
    load_sessions: SessionSource = session_index.load_all,
    read_tail: TailReader = transcripts.tail,
    now: Clock = _utc_now,
    history_depth: int = config.HISTORY_DEPTH,
    tail_lines: int = config.LIVE_TAIL_LINES,
) -> list[Instance]:
    """Build a point-in-time snapshot of live and offline instances.

    Every live process yields one instance, matched to the most recently
    modified session recorded for its working directory. Projects with history
    but no live process contribute up to ``history_depth`` offline instances.
    Live instances come first; no further ordering is applied.
    """
    processes = scan_processes()
    groups = group_by_project(load_sessions())
    now_iso = now().isoformat()

    instances: list[Instance] = []
    for process in processes:
        group = groups.get(process.workingDirectory)
        session = group[0] if group else None
        instances.append(_live_instance(process, session, read_tail, now_iso, tail_lines))

    live_dirs = {process.workingDirectory for process in processes}
    offline_count = 0
    for project_path, sessions in groups.items():
        if project_path in live_dirs:
            continue
        for session in sessions[: max(1, history_depth)]:
            instances.append(_offline_instance(project_path, session))
            offline_count += 1

    logger.debug(f"Built {len(instances)} instances ({len(processes)} live, {offline_count} offline)")
    return instances
