"""FRR CLI fuzzer: exhaustive command-sequence fuzzing of FRR daemons."""

__version__ = "0.3.0"
