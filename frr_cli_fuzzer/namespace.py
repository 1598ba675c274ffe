"""
namespace.py - Isolated execution scope for the FRR daemons.

A long-lived holder process is started in new PID, mount and network
namespaces (util-linux `unshare`). Everything the fuzzer runs afterwards,
daemons, probes and vtysh invocations, enters those namespaces through an
`nsenter` prefix targeting the holder's namespace init.

Tests substitute any object providing run/capture/spawn/list_processes/close.
"""

import os
import subprocess as sp
import sys
import time
from typing import Optional

from frr_cli_fuzzer.errors import IsolationError

UNSHARE_BIN = "unshare"
NSENTER_BIN = "nsenter"
INIT_WAIT_TIMEOUT = 5.0
INIT_ARGV = [sys.executable, "-m", "frr_cli_fuzzer.reaper"]


class ProcessInfo:
    """One row of the scope's process table."""

    def __init__(self, pid: str, state: str, name: str):
        self.pid = pid
        self.state = state
        self.name = name

    @property
    def defunct(self) -> bool:
        return self.state.startswith("Z")

    def __repr__(self):
        return f"ProcessInfo({self.pid}, {self.state!r}, {self.name!r})"


def parse_process_table(output: str) -> list[ProcessInfo]:
    """Parse `ps -eo pid=,stat=,comm=` output."""
    processes = []
    for line in output.splitlines():
        fields = line.split(None, 2)
        if len(fields) != 3:
            continue
        processes.append(ProcessInfo(*fields))
    return processes


class IsolationScope:
    """Handle on the namespaces; runs host commands inside them."""

    def __init__(self, holder: sp.Popen, init_pid: int, nsenter_bin: str = NSENTER_BIN):
        self.holder = holder
        self.init_pid = init_pid
        self.prefix: list[str] = [nsenter_bin, "-t", str(init_pid), "--mount", "--pid", "--net"]
        self._detached: list[sp.Popen] = []

    def wrap(self, argv) -> list[str]:
        return self.prefix + list(argv)

    def run(self, argv, stdout=None, stderr=None) -> int:
        """Run a command inside the scope and wait for it."""
        return sp.run(self.wrap(argv), stdin=sp.DEVNULL, stdout=stdout, stderr=stderr).returncode

    def capture(self, argv) -> str:
        """Run a command inside the scope and return its standard output."""
        result = sp.run(self.wrap(argv), stdin=sp.DEVNULL, capture_output=True, text=True)
        return result.stdout

    def spawn(self, argv, stdout=None, stderr=None) -> None:
        """Start a command inside the scope without waiting for it."""
        self._reap()
        self._detached.append(
            sp.Popen(self.wrap(argv), stdin=sp.DEVNULL, stdout=stdout, stderr=stderr)
        )

    def list_processes(self) -> list[ProcessInfo]:
        return parse_process_table(self.capture(["ps", "-eo", "pid=,stat=,comm="]))

    def _reap(self):
        self._detached = [p for p in self._detached if p.poll() is None]

    def close(self):
        """Kill the namespace init, taking every process in the scope with it."""
        if self.holder.poll() is None:
            self.holder.terminate()
            try:
                self.holder.wait(timeout=10)
            except sp.TimeoutExpired:
                print("WARN: namespace holder did not terminate gracefully. Killing.")
                self.holder.kill()
                self.holder.wait()
        self._reap()


def _child_pid(pid: int) -> Optional[int]:
    """First child of a process, as listed by procfs."""
    try:
        with open(f"/proc/{pid}/task/{pid}/children", "r") as f:
            children = f.read().split()
    except OSError:
        return None
    return int(children[0]) if children else None


def _cmdline(pid: int) -> list[str]:
    try:
        with open(f"/proc/{pid}/cmdline", "rb") as f:
            raw = f.read()
    except OSError:
        return []
    return raw.decode(errors="replace").split("\0")[:-1]


def create_scope(unshare_bin: str = UNSHARE_BIN, nsenter_bin: str = NSENTER_BIN,
                 timeout: float = INIT_WAIT_TIMEOUT, init_argv=None) -> IsolationScope:
    """Create new PID, mount and network namespaces and return a handle on them."""
    init_argv = list(init_argv or INIT_ARGV)
    argv = [unshare_bin, "--fork", "--kill-child", "--pid", "--mount-proc",
            "--net", "--mount", "--propagation", "private", *init_argv]
    try:
        holder = sp.Popen(argv, stdin=sp.DEVNULL, stdout=sp.DEVNULL, stderr=sp.PIPE, text=True)
    except OSError as e:
        raise IsolationError(f"cannot run {unshare_bin}: {e}") from e

    # The namespace init is the holder's forked child. unshare sets up the
    # mounts before it execs the init, so wait for the exec.
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if holder.poll() is not None:
            raise IsolationError(
                f"{unshare_bin} exited with status {holder.returncode}: {holder.stderr.read().strip()}"
            )
        init_pid = _child_pid(holder.pid)
        if init_pid is not None and _cmdline(init_pid) == init_argv:
            return IsolationScope(holder, init_pid, nsenter_bin)
        time.sleep(0.05)

    holder.kill()
    holder.wait()
    raise IsolationError(f"namespace init did not start within {timeout} seconds")


def run_inside(scope, argv, stdout=None, stderr=None) -> int:
    return scope.run(argv, stdout=stdout, stderr=stderr)


def require_root():
    """Namespaces and bind mounts need CAP_SYS_ADMIN."""
    if os.geteuid() != 0:
        raise IsolationError("the fuzzer must run as root to create namespaces")
