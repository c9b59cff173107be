"""Discover running Claude CLI processes from the OS process table."""
from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Optional, Sequence

from ccwatch import config
from ccwatch.models import ProcessRecord

logger = logging.getLogger("ccwatch.process_scanner")

CommandRunner = Callable[[Sequence[str]], str]

# `ps aux` column positions
_PID_COL = 1
_CPU_COL = 2
_MEM_COL = 3
_TTY_COL = 6
_COMMAND_COL = 10
_MIN_PS_COLUMNS = 11

# `lsof` prints the NAME column (the path) from here on
_LSOF_NAME_COL = 8

_NO_TERMINAL_MARKERS = {"??", "?"}


def run_command(args: Sequence[str]) -> str:
    """Run an OS utility and return its stdout; empty string when unavailable."""
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=config.COMMAND_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Command {args[0]} unavailable: {e}")
        return ""
    if result.returncode != 0 and not result.stdout:
        return ""
    return result.stdout


def _safe_float(value: str) -> float:
    try:
        return float(value)
    except ValueError:
        return 0.0


def is_cli_command(command: str, cli_name: str = config.CLI_NAME) -> bool:
    return command == cli_name or command.endswith(f"/{cli_name}")


def parse_ps_line(line: str, cli_name: str = config.CLI_NAME) -> Optional[tuple[int, Optional[str], float, float]]:
    """Parse one `ps aux` line into (pid, terminal, cpu%, mem%) if it is the CLI."""
    if cli_name not in line:
        return None
    if any(marker in line for marker in config.EXCLUDED_PROCESS_MARKERS):
        return None

    parts = line.split()
    if len(parts) < _MIN_PS_COLUMNS:
        return None
    if not is_cli_command(parts[_COMMAND_COL], cli_name):
        return None

    try:
        pid = int(parts[_PID_COL])
    except ValueError:
        return None

    tty = parts[_TTY_COL]
    terminal = None if tty in _NO_TERMINAL_MARKERS else tty
    return pid, terminal, _safe_float(parts[_CPU_COL]), _safe_float(parts[_MEM_COL])


def parse_lsof_cwd(output: str) -> str:
    for line in output.splitlines():
        if "cwd" not in line:
            continue
        parts = line.split()
        if len(parts) > _LSOF_NAME_COL:
            return " ".join(parts[_LSOF_NAME_COL:])
    return ""


def resolve_cwd(
    pid: int,
    run_command: CommandRunner = run_command,
    proc_root: Optional[Path] = None,
) -> str:
    """Resolve a process's working directory via lsof, then /proc."""
    cwd = parse_lsof_cwd(run_command(["lsof", "-a", "-d", "cwd", "-p", str(pid)]))
    if cwd:
        return cwd

    root = proc_root if proc_root is not None else config.PROC_ROOT
    try:
        return os.readlink(root / str(pid) / "cwd")
    except OSError:
        return ""


def scan(
    run_command: CommandRunner = run_command,
    proc_root: Optional[Path] = None,
    cli_name: str = config.CLI_NAME,
) -> list[ProcessRecord]:
    """List running CLI processes with a resolvable working directory.

    Unparseable lines and processes whose cwd cannot be resolved are skipped;
    a missing `ps` yields an empty list.
    """
    processes: list[ProcessRecord] = []
    for line in run_command(["ps", "aux"]).splitlines():
        parsed = parse_ps_line(line, cli_name)
        if parsed is None:
            continue
        pid, terminal, cpu, mem_percent = parsed

        cwd = resolve_cwd(pid, run_command=run_command, proc_root=proc_root)
        if not cwd:
            logger.debug(f"Skipping pid {pid}: working directory not resolvable")
            continue

        processes.append(
            ProcessRecord(
                pid=pid,
                terminal=terminal,
                workingDirectory=cwd,
                cpuPercent=cpu,
                # ps only reports a share of physical memory; rough MB figure
                memoryEstimateMb=mem_percent * 100.0,
            )
        )
    return processes
