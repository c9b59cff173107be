"""CCWatch Configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Claude CLI data locations
CLAUDE_HOME = Path(os.getenv("CCWATCH_CLAUDE_HOME", str(Path.home() / ".claude"))).expanduser()
PROJECTS_DIRNAME = "projects"
SESSION_INDEX_FILENAME = "sessions-index.json"

# Process discovery
CLI_NAME = os.getenv("CCWATCH_CLI_NAME", "claude")
EXCLUDED_PROCESS_MARKERS = ("grep", "Claude.app")
COMMAND_TIMEOUT_SECONDS = _env_float("CCWATCH_COMMAND_TIMEOUT_SECONDS", 5.0)
PROC_ROOT = Path(os.getenv("CCWATCH_PROC_ROOT", "/proc"))

# Instance aggregation
LIVE_TAIL_LINES = _env_int("CCWATCH_LIVE_TAIL_LINES", 50)
HISTORY_LIMIT_DEFAULT = _env_int("CCWATCH_HISTORY_LIMIT_DEFAULT", 100)
HISTORY_DEPTH = max(1, _env_int("CCWATCH_HISTORY_DEPTH", 1))
WORKING_CPU_THRESHOLD = _env_float("CCWATCH_WORKING_CPU_THRESHOLD", 5.0)
MODEL_LABEL = os.getenv("CCWATCH_MODEL_LABEL", "Claude")
DEFAULT_BRANCH = "main"
DISPLAY_NAME_MAX_CHARS = 30

# Transcript parsing
TRANSCRIPT_CONTENT_MAX_CHARS = 500
TRANSCRIPT_MAX_SCAN_LINES = _env_int("CCWATCH_TRANSCRIPT_MAX_SCAN_LINES", 200_000)

# Terminal launching
TERMINAL_COMMAND = os.getenv("CCWATCH_TERMINAL_COMMAND", "x-terminal-emulator -e")
TERMINAL_LAUNCH_ENABLED = _env_bool("CCWATCH_TERMINAL_LAUNCH_ENABLED", True)

# CORS
FRONTEND_ORIGIN = os.getenv("CCWATCH_FRONTEND_ORIGIN", "http://localhost:1420")
