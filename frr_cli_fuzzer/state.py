"""
state.py - Mutable statistics of a fuzzing run.

One FuzzState per run; the corpus builder, the fuzz loop and the reporter
all share it. Counters and the crash registry only ever grow.
"""

from datetime import datetime

NON_FILTERED = "non-filtered-cmds"
FILTERED_WHITELIST = "filtered-whitelist"
FILTERED_BLACKLIST = "filtered-blacklist"
TESTED = "tested-cmds"
SEGFAULTS = "segfaults"


class FuzzState:
    """Encapsulates the counters and crash registry of the fuzzing run."""

    def __init__(self):
        self.start_time: str = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.iterations_done: int = 0
        self.counters: dict[str, int] = {
            NON_FILTERED: 0,
            FILTERED_WHITELIST: 0,
            FILTERED_BLACKLIST: 0,
            TESTED: 0,
            SEGFAULTS: 0,
        }
        # crash message -> PIDs that produced it, in order
        self.segfaults: dict[str, list[str]] = {}

    def count(self, counter: str, amount: int = 1):
        self.counters[counter] += amount

    def record_crash(self, daemon: str, command, pid: str) -> str:
        msg = f"{daemon} aborted: {command}"
        self.counters[SEGFAULTS] += 1
        self.segfaults.setdefault(msg, []).append(pid)
        return msg
