"""
supervisor.py - Start, restart and probe the FRR daemons.

PIDs are recorded as seen from inside the PID namespace, which is what
appears in the daemons' own logs and in the crash registry.
"""

import time
from pathlib import Path

from frr_cli_fuzzer.rebind import shadow_path

NOT_STARTED = "not-started"
STARTING = "starting"
RUNNING = "running"
CRASHED = "crashed"

LOG_SUFFIXES = ("log", "stdout", "stderr")
UNKNOWN_PID = "unknown"


class DaemonSupervisor:
    """Owns the daemon name -> PID mapping for the run."""

    def __init__(self, scope, daemons, runstatedir, localstatedir,
                 pid_timeout: float = 5.0, poll_interval: float = 0.1):
        self.scope = scope
        self.runstatedir = Path(runstatedir)
        self.state_dir = shadow_path(runstatedir, localstatedir)
        self.pid_timeout = pid_timeout
        self.poll_interval = poll_interval
        self.pids: dict[str, str] = {daemon: "" for daemon in daemons}
        self.states: dict[str, str] = {daemon: NOT_STARTED for daemon in daemons}
        self.unknown_crashes = 0

    @property
    def daemons(self) -> list[str]:
        return list(self.pids)

    def pid_of(self, daemon: str) -> str:
        return self.pids[daemon]

    def _resolve_pid(self, daemon: str) -> str:
        """pidof inside the scope, retried while the daemon is still coming up."""
        deadline = time.monotonic() + self.pid_timeout
        while True:
            pid = self.scope.capture(["pidof", "-s", daemon]).strip()
            if pid or time.monotonic() >= deadline:
                return pid
            time.sleep(self.poll_interval)

    def start(self, daemon: str) -> str:
        # Remove old pid file if it exists.
        (self.state_dir / f"{daemon}.pid").unlink(missing_ok=True)

        with open(self.runstatedir / f"{daemon}.stdout", "w") as out, \
                open(self.runstatedir / f"{daemon}.stderr", "w") as err:
            self.scope.spawn([daemon, "--log=stdout", "-d"], stdout=out, stderr=err)
        self.states[daemon] = STARTING

        self.pids[daemon] = self._resolve_pid(daemon)
        if self._probe(daemon):
            self.states[daemon] = RUNNING
        if not self.pids[daemon]:
            print(f"WARN: could not resolve the PID of {daemon}")
        return self.pids[daemon]

    def start_all(self):
        for daemon in self.daemons:
            self.start(daemon)

    def _probe(self, daemon: str) -> bool:
        """Look the daemon up in the scope's process table, filling in a missing PID."""
        for proc in self.scope.list_processes():
            if proc.name == daemon and not proc.defunct:
                if not self.pids[daemon]:
                    self.pids[daemon] = proc.pid
                return True
        return False

    def is_alive(self, daemon: str) -> bool:
        """A live, non-defunct process named after the daemon exists in the scope."""
        alive = self._probe(daemon)
        if alive:
            self.states[daemon] = RUNNING
        elif self.states[daemon] != NOT_STARTED:
            self.states[daemon] = CRASHED
        return alive

    def mark_crashed(self, daemon: str) -> str:
        """Flag the daemon as crashed and return the identifier its crash is filed under."""
        self.states[daemon] = CRASHED
        if not self.pids[daemon]:
            self.unknown_crashes += 1
            self.pids[daemon] = f"{UNKNOWN_PID}-{self.unknown_crashes}"
        return self.pids[daemon]

    def rotate_logs(self, daemon: str) -> list[Path]:
        """Suffix the daemon's log files with its dead PID so the next start begins fresh."""
        pid = self.mark_crashed(daemon)
        rotated = []
        for suffix in LOG_SUFFIXES:
            log_file = self.runstatedir / f"{daemon}.{suffix}"
            if not log_file.exists():
                print(f"WARN: {log_file} does not exist, nothing to rotate")
                continue
            rotated.append(log_file.rename(_unused_name(log_file.with_name(f"{log_file.name}.{pid}"))))
        return rotated

    def restart(self, daemon: str) -> str:
        self.rotate_logs(daemon)
        return self.start(daemon)


def _unused_name(path: Path) -> Path:
    """First free name at or after path; rotated logs are never overwritten."""
    candidate, n = path, 0
    while candidate.exists():
        n += 1
        candidate = path.with_name(f"{path.name}.{n}")
    return candidate
