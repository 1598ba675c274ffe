"""
rebind.py - Working root preparation and bind mounts.

FRR's configuration and state directories are shadowed by directories
under the runstatedir and bind mounted over the real paths inside the
isolation scope, so every file the daemons write lands in one disposable
tree.
"""

import os
import shutil
from pathlib import Path
from typing import Optional

from frr_cli_fuzzer.config import RUNSTATEDIR_MARKER
from frr_cli_fuzzer.errors import SetupError, UnsafeRunstatedirError


def chown_tree(path, user: Optional[str], group: Optional[str]):
    """Recursively chown a directory; a None user and group leave ownership alone."""
    if user is None and group is None:
        return
    try:
        for root, dirs, files in os.walk(path):
            shutil.chown(root, user, group)
            for name in files:
                shutil.chown(os.path.join(root, name), user, group)
    except (LookupError, OSError) as e:
        raise SetupError(f"cannot chown {path} to {user}:{group}: {e}") from e


def prepare_runstatedir(runstatedir, user: Optional[str] = None, group: Optional[str] = None) -> Path:
    """Wipe and recreate the working root. Refuses paths without the marker."""
    runstatedir = Path(runstatedir)
    if RUNSTATEDIR_MARKER not in str(runstatedir):
        raise UnsafeRunstatedirError(runstatedir, RUNSTATEDIR_MARKER)

    shutil.rmtree(runstatedir, ignore_errors=True)
    runstatedir.mkdir(parents=True, exist_ok=True)
    chown_tree(runstatedir, user, group)
    return runstatedir


def shadow_path(runstatedir, path) -> Path:
    """Location under the working root that mirrors an absolute path."""
    return Path(runstatedir) / Path(path).relative_to(Path(path).anchor)


class Rebinder:
    """Bind mounts shadow directories over real paths inside a scope."""

    def __init__(self, scope, runstatedir):
        self.scope = scope
        self.runstatedir = Path(runstatedir)
        self.bound: set[Path] = set()

    def rebind(self, path, user: Optional[str] = None, group: Optional[str] = None) -> Path:
        """Bind mount runstatedir/<path> onto <path>; repeated calls are no-ops."""
        path = Path(path)
        source = shadow_path(self.runstatedir, path)
        path.mkdir(parents=True, exist_ok=True)
        source.mkdir(parents=True, exist_ok=True)
        chown_tree(source, user, group)
        if path in self.bound:
            return source

        status = self.scope.run(["mount", "--bind", str(source), str(path)])
        if status != 0:
            raise SetupError(f"bind mount of {source} on {path} failed with status {status}")
        self.bound.add(path)
        return source
