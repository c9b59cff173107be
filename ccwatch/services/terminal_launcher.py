"""Open a terminal window running the Claude CLI in a project directory."""
from __future__ import annotations

import logging
import shlex
import subprocess
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from ccwatch import config

logger = logging.getLogger("ccwatch.terminal")

Spawner = Callable[[Sequence[str]], object]


class TerminalLaunchError(RuntimeError):
    """Raised when a terminal could not be started."""


def build_cli_command(working_directory: str, session_id: Optional[str] = None) -> str:
    command = f"cd {shlex.quote(working_directory)} && {shlex.quote(config.CLI_NAME)}"
    if session_id:
        command += f" --resume {shlex.quote(session_id)}"
    return command


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def build_launch_args(cli_command: str, platform: str = sys.platform) -> list[str]:
    """Return argv that opens a terminal executing ``cli_command``."""
    if platform == "darwin":
        script = (
            'tell application "Terminal"\n'
            "    activate\n"
            f"    do script {_applescript_string(cli_command)}\n"
            "end tell"
        )
        return ["osascript", "-e", script]
    return [*shlex.split(config.TERMINAL_COMMAND), "sh", "-c", cli_command]


def _spawn(args: Sequence[str]) -> object:
    return subprocess.Popen(
        list(args),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


def open_in_terminal(
    working_directory: str,
    session_id: Optional[str] = None,
    spawn: Spawner = _spawn,
    platform: str = sys.platform,
) -> None:
    """Spawn a terminal attached to the CLI, resuming ``session_id`` if given.

    Fire-and-forget: only failure to start the terminal is reported, as a
    TerminalLaunchError.
    """
    if not config.TERMINAL_LAUNCH_ENABLED:
        raise TerminalLaunchError("Failed to open terminal: terminal launching is disabled")
    if not Path(working_directory).is_dir():
        raise TerminalLaunchError(f"Failed to open terminal: directory {working_directory} does not exist")

    args = build_launch_args(build_cli_command(working_directory, session_id), platform)
    try:
        spawn(args)
    except (OSError, ValueError, subprocess.SubprocessError) as e:
        raise TerminalLaunchError(f"Failed to open terminal: {e}") from e

    logger.info(f"Opened terminal in {working_directory} (session={session_id or 'new'})")
