"""
corpus.py - Build the list of commands to fuzz.

vtysh enumerates every valid permutation under each configured hierarchy.
Candidates go through the whitelist, then the blacklist, and the survivors
get their parameter tokens rewritten into concrete values.
"""

import re
import shlex

from frr_cli_fuzzer.config import compile_patterns
from frr_cli_fuzzer.state import FILTERED_BLACKLIST, FILTERED_WHITELIST, NON_FILTERED

LIST_PERMUTATIONS = "list permutations"

# Only the upper bound of a range is tested, e.g. "(1-65535)" -> "65535".
RANGE_TOKEN = re.compile(r"\((-?\d+)-(-?\d+)\)")


class Command:
    """A concrete vtysh invocation under one hierarchy."""

    def __init__(self, cli: str, hierarchy: str, line: str):
        self.cli = cli
        self.hierarchy = hierarchy
        self.line = line

    @property
    def argv(self) -> list[str]:
        return [self.cli, *shlex.split(self.hierarchy), "-c", self.line]

    def __str__(self):
        return f"{self.cli} {self.hierarchy} -c \"{self.line}\""

    def __repr__(self):
        return f"Command({str(self)!r})"

    def __eq__(self, other):
        return isinstance(other, Command) and str(other) == str(self)

    def __hash__(self):
        return hash(str(self))


def matches_any(command: str, patterns) -> bool:
    return any(pattern.search(command) for pattern in patterns)


def filter_whitelist(command: str, whitelist) -> bool:
    """True when the command should be dropped. An empty whitelist keeps everything."""
    if not whitelist:
        return False
    return not matches_any(command, whitelist)


def filter_blacklist(command: str, blacklist) -> bool:
    """True when the command should be dropped."""
    return matches_any(command, blacklist)


def collapse_range(word: str) -> str:
    match = RANGE_TOKEN.match(word)
    return match.group(2) if match else word


def prepare_command(command: str, regexps: dict) -> str:
    """Apply the custom substitutions and range collapsing to every token."""
    words = []
    for word in command.split():
        for pattern, replacement in regexps.items():
            word = word.replace(pattern, replacement, 1)
        words.append(collapse_range(word))
    return " ".join(words).rstrip()


class CorpusBuilder:
    def __init__(self, scope, state, cli: str = "vtysh", regexps=None,
                 global_whitelist=(), global_blacklist=(), echo=print):
        self.scope = scope
        self.state = state
        self.cli = cli
        self.regexps = dict(regexps or {})
        self.global_whitelist = compile_patterns(global_whitelist)
        self.global_blacklist = compile_patterns(global_blacklist)
        self.echo = echo

    def permutations(self, hierarchy: str) -> list[str]:
        argv = Command(self.cli, hierarchy, LIST_PERMUTATIONS).argv
        return self.scope.capture(argv).splitlines()

    def build_node(self, node) -> list[Command]:
        whitelist = node.whitelist + self.global_whitelist
        blacklist = node.blacklist + self.global_blacklist

        commands = []
        for line in self.permutations(node.hierarchy):
            line = line.strip()
            if not line:
                continue

            # Check whitelist and blacklist.
            if filter_whitelist(line, whitelist):
                self.echo(f"filtering (whitelist): {line}")
                self.state.count(FILTERED_WHITELIST)
                continue
            if filter_blacklist(line, blacklist):
                self.echo(f"filtering (blacklist): {line}")
                self.state.count(FILTERED_BLACKLIST)
                continue

            self.state.count(NON_FILTERED)
            commands.append(Command(self.cli, node.hierarchy, prepare_command(line, self.regexps)))
        return commands

    def build(self, nodes) -> list[Command]:
        commands = []
        for node in nodes:
            commands.extend(self.build_node(node))
        self.echo(f"non-filtered commands: {self.state.counters[NON_FILTERED]}")
        return commands
