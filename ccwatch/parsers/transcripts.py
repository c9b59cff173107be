"""Parse Claude Code JSONL transcripts into display-ready TranscriptLine tails."""
from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path
from typing import Any, Optional

from ccwatch import config
from ccwatch.models import TranscriptLine

logger = logging.getLogger("ccwatch.parsers")

_LOCAL_COMMAND_PREFIX = "<local-command"
_ELLIPSIS = "..."
_KIND_BY_ROLE = {
    "user": "input",
    "assistant": "output",
}


def extract_text(content: Any) -> Optional[str]:
    """Flatten a message ``content`` payload into plain text.

    Strings pass through; block lists keep only ``text`` blocks, newline-joined.
    Any other shape returns None.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for block in content:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            text = block.get("text")
            if isinstance(text, str):
                texts.append(text)
        return "\n".join(texts)
    return None


def truncate_content(text: str, limit: int = config.TRANSCRIPT_CONTENT_MAX_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + _ELLIPSIS


def classify_role(role: Any) -> str:
    if isinstance(role, str):
        return _KIND_BY_ROLE.get(role, "system")
    return "system"


def _record_to_line(record: Any, line_no: int) -> Optional[TranscriptLine]:
    if not isinstance(record, dict):
        return None
    message = record.get("message")
    if not isinstance(message, dict):
        return None

    text = extract_text(message.get("content"))
    if not text or text.startswith(_LOCAL_COMMAND_PREFIX):
        return None

    timestamp = record.get("timestamp")
    return TranscriptLine(
        id=f"line-{line_no}",
        kind=classify_role(message.get("role")),
        content=truncate_content(text),
        timestamp=timestamp if isinstance(timestamp, str) else "",
    )


def tail(
    log_file_path: str | Path,
    max_lines: int,
    max_scan_lines: int = config.TRANSCRIPT_MAX_SCAN_LINES,
) -> list[TranscriptLine]:
    """Return the last ``max_lines`` conversational lines of a transcript.

    Lines keep file order. Malformed records are skipped and a missing or
    unreadable file returns an empty list. ``max_scan_lines`` caps how many raw
    lines are read (0 disables the cap).
    """
    if max_lines <= 0:
        return []

    path = Path(log_file_path)
    lines: deque[TranscriptLine] = deque(maxlen=max_lines)
    emitted = 0

    try:
        with path.open(encoding="utf-8", errors="replace") as file:
            for scanned, raw in enumerate(file, start=1):
                if max_scan_lines and scanned > max_scan_lines:
                    logger.warning(f"Transcript {path} exceeds {max_scan_lines} lines; tail truncated at scan cap")
                    break
                raw = raw.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except (ValueError, RecursionError):
                    # bad JSON, oversized integers or nesting past the recursion limit
                    continue

                line = _record_to_line(record, emitted)
                if line is None:
                    continue
                lines.append(line)
                emitted += 1
    except OSError as e:
        logger.debug(f"Cannot read transcript {path}: {e}")
        return []

    return list(lines)
