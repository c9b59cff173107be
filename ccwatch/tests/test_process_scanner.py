import os
import sys
import tempfile
import unittest
from pathlib import Path

from ccwatch import process_scanner

_PS_HEADER = "USER PID %CPU %MEM VSZ RSS TT STAT STARTED TIME COMMAND"


def _ps_line(pid: int, cpu: str, mem: str, tty: str, command: str) -> str:
    return f"dev {pid} {cpu} {mem} 4000 2000 {tty} S+ 10:00AM 0:01.00 {command}"


def _lsof_output(pid: int, path: str) -> str:
    return (
        "COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME\n"
        f"claude {pid} dev cwd DIR 1,4 640 123 {path}\n"
    )


class _FakeOS:
    def __init__(self, ps_lines: list[str], cwd_by_pid: dict[int, str]) -> None:
        self.ps_output = "\n".join([_PS_HEADER, *ps_lines])
        self.cwd_by_pid = cwd_by_pid
        self.calls: list[list[str]] = []

    def __call__(self, args) -> str:
        args = list(args)
        self.calls.append(args)
        if args[0] == "ps":
            return self.ps_output
        if args[0] == "lsof":
            pid = int(args[-1])
            if pid in self.cwd_by_pid:
                return _lsof_output(pid, self.cwd_by_pid[pid])
        return ""


class ProcessScannerTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.proc_root = Path(tmpdir.name)

    def test_scan_matches_cli_binary_and_parses_fields(self) -> None:
        fake = _FakeOS(
            [
                _ps_line(101, "7.2", "0.5", "s001", "/usr/local/bin/claude"),
                _ps_line(102, "1.0", "1.2", "??", "claude --resume abc"),
            ],
            {101: "/Users/dev/alpha", 102: "/Users/dev/beta"},
        )

        processes = process_scanner.scan(run_command=fake, proc_root=self.proc_root)

        self.assertEqual([p.pid for p in processes], [101, 102])
        self.assertEqual(processes[0].terminal, "s001")
        self.assertEqual(processes[0].workingDirectory, "/Users/dev/alpha")
        self.assertAlmostEqual(processes[0].cpuPercent, 7.2)
        self.assertAlmostEqual(processes[0].memoryEstimateMb, 50.0)
        self.assertIsNone(processes[1].terminal)

    def test_scan_excludes_tools_and_desktop_app(self) -> None:
        fake = _FakeOS(
            [
                _ps_line(201, "0.0", "0.0", "s002", "grep claude"),
                _ps_line(202, "3.0", "2.0", "??", "/Applications/Claude.app/Contents/MacOS/claude"),
                _ps_line(203, "3.0", "2.0", "s003", "node /opt/claude-helper/index.js"),
                _ps_line(204, "3.0", "2.0", "s004", "/usr/bin/vim notes-for-claude.md"),
            ],
            {201: "/a", 202: "/b", 203: "/c", 204: "/d"},
        )

        self.assertEqual(process_scanner.scan(run_command=fake, proc_root=self.proc_root), [])

    def test_scan_drops_processes_without_working_directory(self) -> None:
        fake = _FakeOS(
            [
                _ps_line(301, "2.0", "0.1", "s001", "claude"),
                _ps_line(302, "2.0", "0.1", "s002", "claude"),
            ],
            {302: "/Users/dev/gamma"},
        )

        processes = process_scanner.scan(run_command=fake, proc_root=self.proc_root)

        self.assertEqual([p.pid for p in processes], [302])

    def test_scan_skips_short_and_unparseable_lines(self) -> None:
        fake = _FakeOS(
            [
                "claude",
                _ps_line(0, "x", "y", "s001", "claude").replace(" 0 ", " abc ", 1),
                _ps_line(401, "n/a", "n/a", "s001", "claude"),
            ],
            {401: "/Users/dev/delta"},
        )

        processes = process_scanner.scan(run_command=fake, proc_root=self.proc_root)

        self.assertEqual(len(processes), 1)
        self.assertEqual(processes[0].cpuPercent, 0.0)
        self.assertEqual(processes[0].memoryEstimateMb, 0.0)

    def test_scan_returns_empty_when_ps_unavailable(self) -> None:
        self.assertEqual(process_scanner.scan(run_command=lambda args: "", proc_root=self.proc_root), [])

    def test_working_directory_with_spaces_is_joined(self) -> None:
        output = _lsof_output(55, "/Users/dev/My Project")
        self.assertEqual(process_scanner.parse_lsof_cwd(output), "/Users/dev/My Project")

    def test_resolve_cwd_falls_back_to_proc(self) -> None:
        target = self.proc_root / "workdir"
        target.mkdir()
        pid_dir = self.proc_root / "77"
        pid_dir.mkdir()
        os.symlink(target, pid_dir / "cwd")

        cwd = process_scanner.resolve_cwd(77, run_command=lambda args: "", proc_root=self.proc_root)

        self.assertEqual(cwd, str(target))

    def test_run_command_missing_binary_returns_empty(self) -> None:
        self.assertEqual(process_scanner.run_command(["ccwatch-no-such-binary-xyz"]), "")

    def test_run_command_replaces_undecodable_output(self) -> None:
        output = process_scanner.run_command(
            [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'claude \\xff\\n')"]
        )

        self.assertEqual(output, "claude \ufffd\n")

    @unittest.skipUnless(sys.platform.startswith("linux"), "needs a filesystem that accepts non-UTF-8 names")
    def test_resolve_cwd_with_undecodable_proc_link_is_utf8_safe(self) -> None:
        target = os.fsencode(self.proc_root) + b"/caf\xe9"
        os.mkdir(target)
        pid_dir = self.proc_root / "88"
        pid_dir.mkdir()
        os.symlink(target, os.fsencode(pid_dir / "cwd"))
        fake = _FakeOS([_ps_line(88, "1.0", "0.1", "s001", "claude")], {})

        processes = process_scanner.scan(run_command=fake, proc_root=self.proc_root)

        self.assertEqual(len(processes), 1)
        processes[0].workingDirectory.encode("utf-8")
        self.assertTrue(processes[0].workingDirectory.endswith("/caf?"))

    def test_is_cli_command(self) -> None:
        self.assertTrue(process_scanner.is_cli_command("claude"))
        self.assertTrue(process_scanner.is_cli_command("/usr/local/bin/claude"))
        self.assertFalse(process_scanner.is_cli_command("claude-code"))
        self.assertFalse(process_scanner.is_cli_command("/usr/bin/notclaude"))


if __name__ == "__main__":
    unittest.main()
