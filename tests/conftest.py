"""Pytest configuration: a fake isolation scope that needs no privileges."""

import pytest

from frr_cli_fuzzer.config import FuzzConfig
from frr_cli_fuzzer.namespace import ProcessInfo


class FakeScope:
    """Stands in for IsolationScope; daemons are entries in a fake process table."""

    def __init__(self, permutations=None, crash_on=None):
        # hierarchy -> "list permutations" output
        self.permutations = permutations or {}
        # command line -> daemon killed by running it
        self.crash_on = crash_on or {}
        self.processes: dict[str, str] = {}
        self.runs = []
        self.captures = []
        self.spawned = []
        self.next_pid = 100
        self.closed = False

    def run(self, argv, stdout=None, stderr=None):
        argv = list(argv)
        self.runs.append(argv)
        if argv[-1] in self.crash_on:
            self.kill(self.crash_on[argv[-1]])
        if stdout is not None:
            stdout.write("ok\n")
        return 0

    def capture(self, argv):
        argv = list(argv)
        self.captures.append(argv)
        if argv[0] == "pidof":
            return self.processes.get(argv[-1], "") + "\n"
        if argv[-1] == "list permutations":
            return self.permutations.get(" ".join(argv[1:-2]), "")
        return ""

    def spawn(self, argv, stdout=None, stderr=None):
        argv = list(argv)
        self.spawned.append(argv)
        self.next_pid += 1
        self.processes[argv[0]] = str(self.next_pid)

    def list_processes(self):
        return [ProcessInfo(pid, "Ssl", name) for name, pid in self.processes.items()]

    def kill(self, daemon):
        self.processes.pop(daemon, None)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_scope():
    return FakeScope()


@pytest.fixture
def runstatedir(tmp_path):
    path = tmp_path / "frr-cli-fuzzer"
    path.mkdir()
    return path


@pytest.fixture
def make_config(tmp_path, runstatedir):
    """Build a FuzzConfig rooted in tmp_path, with chown disabled."""

    def _make(**overrides):
        data = {
            "runstatedir": str(runstatedir),
            "pid-timeout": 0,
            "frr": {
                "sysconfdir": str(tmp_path / "etc" / "frr"),
                "localstatedir": str(tmp_path / "var" / "run" / "frr"),
                "user": None,
                "group": None,
            },
        }
        data.update(overrides)
        return FuzzConfig(data)

    return _make
