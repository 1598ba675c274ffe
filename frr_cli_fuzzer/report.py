"""
report.py - Render the results of a fuzzing run.
"""

from pathlib import Path

from frr_cli_fuzzer.state import (
    FILTERED_BLACKLIST,
    FILTERED_WHITELIST,
    NON_FILTERED,
    SEGFAULTS,
    TESTED,
    FuzzState,
)


def render_results(state: FuzzState) -> str:
    lines = [
        "results:",
        f"- non-filtered commands: {state.counters[NON_FILTERED]}",
        f"- whitelist filtered commands: {state.counters[FILTERED_WHITELIST]}",
        f"- blacklist filtered commands: {state.counters[FILTERED_BLACKLIST]}",
        f"- tested commands: {state.counters[TESTED]}",
        f"- segfaults detected: {state.counters[SEGFAULTS]}",
    ]
    for msg, pids in state.segfaults.items():
        lines.append(f"    (x{len(pids)}) {msg}")
        lines.append("      PIDs: " + " ".join(pids))
    return "\n".join(lines)


def print_results(state: FuzzState):
    print("\n" + render_results(state))


def write_summary(state: FuzzState, path) -> Path:
    """Persist the report next to the run's other artifacts."""
    path = Path(path)
    header = (
        f"Fuzzing run summary\n"
        f"Started at: {state.start_time}\n"
        f"Iterations completed: {state.iterations_done}\n\n"
    )
    with open(path, "w") as f:
        f.write(header + render_results(state) + "\n")
    return path
