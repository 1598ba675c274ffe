#!/usr/bin/env python3

"""
runner.py - The main fuzzing loop orchestrator for the FRR CLI fuzzer.

Sets up the isolated environment, starts the configured daemons, builds the
command corpus once and then injects it over and over, restarting any daemon
that dies and recording which command it died on.
"""

import argparse
import itertools
import random
import sys
import traceback
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from frr_cli_fuzzer import __version__
from frr_cli_fuzzer.config import FuzzConfig, iteration_limit
from frr_cli_fuzzer.configgen import ConfigGenerator
from frr_cli_fuzzer.corpus import Command, CorpusBuilder
from frr_cli_fuzzer.errors import ConfigError, SetupError
from frr_cli_fuzzer.namespace import create_scope, require_root
from frr_cli_fuzzer.rebind import Rebinder, prepare_runstatedir, shadow_path
from frr_cli_fuzzer.report import print_results, write_summary
from frr_cli_fuzzer.state import TESTED, FuzzState
from frr_cli_fuzzer.supervisor import DaemonSupervisor

# --- Artifacts under the runstatedir ---
TRANSCRIPT = "vtysh"
SEGFAULTS_FILE = "segfaults.txt"
SUMMARY_FILE = "summary.txt"


# --- Main Runner Class ---
class FuzzRunner:
    """Orchestrates the main fuzzing loop."""

    def __init__(self, config: FuzzConfig, scope, state: Optional[FuzzState] = None,
                 progress: bool = True):
        self.config = config
        self.scope = scope
        self.state = state or FuzzState()
        self.progress = progress
        self.rng = random.Random(config.seed)
        self.runstatedir: Path = config.runstatedir
        self.supervisor = DaemonSupervisor(
            scope, config.daemons, config.runstatedir, config.frr.localstatedir,
            pid_timeout=config.pid_timeout,
        )

    def setup(self):
        """Bind mount the FRR directories, write the configs and start every daemon."""
        frr = self.config.frr
        rebinder = Rebinder(self.scope, self.runstatedir)
        rebinder.rebind(frr.sysconfdir, frr.user, frr.group)
        rebinder.rebind(frr.localstatedir, frr.user, frr.group)

        generator = ConfigGenerator(
            self.config.configs, shadow_path(self.runstatedir, frr.sysconfdir), self.runstatedir
        )
        generator.generate_all(self.config.daemons)
        self.supervisor.start_all()

    def prepare_commands(self) -> list[Command]:
        builder = CorpusBuilder(
            self.scope, self.state,
            cli=self.config.cli,
            regexps=self.config.regexps,
            global_whitelist=self.config.global_whitelist,
            global_blacklist=self.config.global_blacklist,
        )
        return builder.build(self.config.nodes)

    def _append(self, name: str, text: str):
        with open(self.runstatedir / name, "a") as f:
            f.write(text + "\n")

    def send_command(self, command: Command):
        """Run one command through vtysh, keeping a transcript of everything it prints."""
        tqdm.write(f"testing: {command}")

        stdout_path = self.runstatedir / f"{TRANSCRIPT}.stdout"
        stderr_path = self.runstatedir / f"{TRANSCRIPT}.stderr"
        for path in (stdout_path, stderr_path):
            self._append(path.name, str(command))
        with open(stdout_path, "a") as out, open(stderr_path, "a") as err:
            self.scope.run(command.argv, stdout=out, stderr=err)

    def log_segfault(self, daemon: str, command: Command):
        """Log a crash to both the standard output and the segfaults file."""
        pid = self.supervisor.pid_of(daemon)
        msg = self.state.record_crash(daemon, command, pid)
        msg += f" (PID: {pid})"
        tqdm.write(msg)
        self._append(SEGFAULTS_FILE, msg)

    def check_daemons(self, command: Command):
        """Restart every daemon that did not survive the last command."""
        for daemon in self.supervisor.daemons:
            if self.supervisor.is_alive(daemon):
                continue

            self.supervisor.mark_crashed(daemon)
            self.log_segfault(daemon, command)
            self.supervisor.restart(daemon)

    def run(self, commands: list[Command]) -> int:
        """The main fuzzing loop. Returns the number of completed iterations."""
        if not commands:
            return 0

        limit = self.config.iterations
        for iteration in tqdm(itertools.count(1), total=limit.count, desc="Fuzzing",
                              unit="iterations", disable=not self.progress):
            tqdm.write(f"\nfuzz iteration: #{iteration}")
            if self.config.random_order:
                self.rng.shuffle(commands)

            for command in commands:
                self.state.count(TESTED)
                self.send_command(command)
                self.check_daemons(command)

            self.state.iterations_done = iteration
            if limit.reached(iteration):
                break
        return self.state.iterations_done

    def fuzz(self) -> int:
        return self.run(self.prepare_commands())

    def report(self):
        print_results(self.state)
        write_summary(self.state, self.runstatedir / SUMMARY_FILE)


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Fuzz the vtysh command tree of FRR daemons inside isolated namespaces."
    )
    parser.add_argument("config_file", type=str, help="Path to the JSON configuration file.")
    parser.add_argument("--iterations", type=int, help="Number of iterations (0 runs forever).")
    parser.add_argument("--random-order", action="store_true", default=None,
                        help="Shuffle the commands on every iteration.")
    parser.add_argument("--seed", type=int, help="Seed for the shuffle.")
    parser.add_argument("--runstatedir", type=str,
                        help="Working directory; must contain \"frr-cli-fuzzer\".")
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def apply_overrides(config: FuzzConfig, args) -> FuzzConfig:
    if args.iterations is not None:
        config.iterations = iteration_limit(args.iterations)
    if args.random_order is not None:
        config.random_order = args.random_order
    if args.seed is not None:
        config.seed = args.seed
    if args.runstatedir is not None:
        config.runstatedir = Path(args.runstatedir)
    return config


def main(argv=None):
    args = parse_arguments(argv)

    try:
        config = apply_overrides(FuzzConfig.load(args.config_file), args)
        require_root()
        prepare_runstatedir(config.runstatedir, config.frr.user, config.frr.group)
        scope = create_scope()
    except ConfigError as e:
        print(f"Configuration Error: {e}")
        sys.exit(1)
    except SetupError as e:
        print(f"Setup Error: {e}")
        sys.exit(1)

    runner = FuzzRunner(config, scope, progress=not args.no_progress)
    try:
        runner.setup()
        runner.fuzz()
        runner.report()
    except SetupError as e:
        print(f"Setup Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        runner.report()
        sys.exit(130)
    except Exception:
        traceback.print_exc()
        sys.exit(1)
    finally:
        scope.close()


if __name__ == "__main__":
    main()
