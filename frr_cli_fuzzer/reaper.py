"""
reaper.py - PID 1 of the fuzzing namespace.

Daemons that fork into the background and later crash are reparented to the
namespace init; waiting on them here keeps the process table free of
zombies for the whole run.
"""

import os
import signal
import sys
import time


def reap(wait=os.wait, idle: float = 1.0):
    while True:
        try:
            wait()
        except ChildProcessError:
            time.sleep(idle)


def main():
    # PID 1 ignores signals it has no handler for.
    signal.signal(signal.SIGTERM, lambda signum, frame: sys.exit(0))
    reap()


if __name__ == "__main__":
    main()
