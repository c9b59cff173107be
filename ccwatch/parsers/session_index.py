"""Load per-project ``sessions-index.json`` files into SessionDescriptor models."""
from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ccwatch import config
from ccwatch.models import SessionDescriptor, SessionIndex

logger = logging.getLogger("ccwatch.parsers")


def default_projects_dir() -> Path:
    return config.CLAUDE_HOME / config.PROJECTS_DIRNAME


def load_index_file(index_path: Path) -> list[SessionDescriptor]:
    """Parse one index file; any read, JSON or schema failure yields no entries."""
    try:
        raw = json.loads(index_path.read_text(encoding="utf-8"))
        index = SessionIndex.model_validate(raw)
    except FileNotFoundError:
        return []
    except (OSError, ValueError, RecursionError, ValidationError) as e:
        logger.debug(f"Skipping session index {index_path}: {e}")
        return []
    return list(index.entries)


def load_all(root_directory: Path | None = None) -> list[SessionDescriptor]:
    """Flatten every project's session index, most recently modified first.

    Project directories are visited in name order so ties in ``modifiedAt``
    resolve the same way on every call.
    """
    root = root_directory if root_directory is not None else default_projects_dir()
    try:
        project_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError:
        return []

    sessions: list[SessionDescriptor] = []
    for project_dir in project_dirs:
        sessions.extend(load_index_file(project_dir / config.SESSION_INDEX_FILENAME))

    # sorted() is stable, so equal timestamps keep encounter order
    return sorted(sessions, key=lambda s: s.modifiedAt, reverse=True)
