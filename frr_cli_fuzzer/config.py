"""
config.py - Fuzzer configuration, loaded from a JSON file.

Every recognized option becomes a typed attribute on FuzzConfig. Missing
options fall back to the defaults below; the iteration count is turned into
an explicit Bounded/Unbounded limit so the rest of the code never has to
interpret a magic zero.
"""

import json
import re
from pathlib import Path
from typing import Optional

from frr_cli_fuzzer.errors import ConfigError

# --- Defaults ---
DFLT_ITERATIONS = 1
DFLT_RUNSTATEDIR = "/tmp/frr-cli-fuzzer"
DFLT_FRR_SYSCONFDIR = "/etc/frr"
DFLT_FRR_LOCALSTATEDIR = "/var/run/frr"
DFLT_FRR_USER = "frr"
DFLT_FRR_GROUP = "frr"
DFLT_CLI = "vtysh"
DFLT_PID_TIMEOUT = 5.0

# Security check to prevent accidental deletion of data.
RUNSTATEDIR_MARKER = "frr-cli-fuzzer"


# --- Iteration limits ---
class Bounded:
    """Stop after a fixed number of iterations."""

    def __init__(self, count: int):
        if count <= 0:
            raise ValueError("a bounded run needs a positive iteration count")
        self.count = count

    def reached(self, iteration: int) -> bool:
        return iteration >= self.count

    def __eq__(self, other):
        return isinstance(other, Bounded) and other.count == self.count

    def __repr__(self):
        return f"Bounded({self.count})"


class Unbounded:
    """Run until externally interrupted."""

    count = None

    def reached(self, iteration: int) -> bool:
        return False

    def __eq__(self, other):
        return isinstance(other, Unbounded)

    def __repr__(self):
        return "Unbounded()"


def iteration_limit(iterations: int):
    """Convert the configuration file's iteration count (<= 0 means forever)."""
    return Bounded(iterations) if iterations > 0 else Unbounded()


def compile_patterns(patterns) -> tuple:
    """Compile a whitelist or blacklist, rejecting invalid regular expressions."""
    compiled = []
    for pattern in patterns or ():
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigError(f"invalid regular expression {pattern!r}: {e}") from e
    return tuple(compiled)


class Hierarchy:
    """A command-tree location plus its own whitelist and blacklist."""

    def __init__(self, hierarchy: str, whitelist=None, blacklist=None):
        self.hierarchy = hierarchy
        self.whitelist: tuple = compile_patterns(whitelist)
        self.blacklist: tuple = compile_patterns(blacklist)

    def __repr__(self):
        return f"Hierarchy({self.hierarchy!r})"


class FrrParameters:
    """Where FRR was built to look for its files and who it runs as."""

    def __init__(self, data: dict):
        if not isinstance(data, dict):
            raise ConfigError("\"frr\" must be a JSON object")
        self.sysconfdir: str = data.get("sysconfdir", DFLT_FRR_SYSCONFDIR)
        self.localstatedir: str = data.get("localstatedir", DFLT_FRR_LOCALSTATEDIR)
        self.user: Optional[str] = data.get("user", DFLT_FRR_USER)
        self.group: Optional[str] = data.get("group", DFLT_FRR_GROUP)


# --- Configuration Class ---
class FuzzConfig:
    """Encapsulates all configuration for the fuzzing run."""

    def __init__(self, config_data: Optional[dict] = None):
        config_data = config_data or {}
        try:
            # --- Fuzzing parameters ---
            self.iterations = iteration_limit(int(config_data.get("iterations", DFLT_ITERATIONS)))
            self.random_order: bool = bool(config_data.get("random-order", False))
            self.seed: Optional[int] = config_data.get("seed")
            self.runstatedir: Path = Path(config_data.get("runstatedir", DFLT_RUNSTATEDIR))
            self.pid_timeout: float = float(config_data.get("pid-timeout", DFLT_PID_TIMEOUT))

            # --- FRR build parameters and targets ---
            self.frr = FrrParameters(config_data.get("frr") or {})
            self.cli: str = config_data.get("cli", DFLT_CLI)
            self.daemons: list[str] = list(config_data.get("daemons") or [])
            self.configs: dict[str, str] = dict(config_data.get("configs") or {})

            # --- Command generation ---
            if not all(isinstance(node, dict) for node in config_data.get("nodes") or []):
                raise ConfigError("every entry in \"nodes\" must be a JSON object")
            self.nodes: list[Hierarchy] = [
                Hierarchy(node["hierarchy"], node.get("whitelist"), node.get("blacklist"))
                for node in config_data.get("nodes") or []
            ]
            self.regexps: dict[str, str] = dict(config_data.get("regexps") or {})
            self.global_whitelist: tuple = compile_patterns(config_data.get("whitelist"))
            self.global_blacklist: tuple = compile_patterns(config_data.get("blacklist"))
        except KeyError as e:
            raise ConfigError(f"missing configuration key: {e}") from e
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid configuration value: {e}") from e

    @classmethod
    def load(cls, config_path) -> "FuzzConfig":
        """Read a JSON configuration file."""
        print(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                config_data = json.load(f)
        except OSError as e:
            raise ConfigError(f"cannot read {config_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigError(f"{config_path} is not valid JSON: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        return cls(config_data)
