import shutil
from pathlib import Path

import pytest

from frr_cli_fuzzer.errors import SetupError, UnsafeRunstatedirError
from frr_cli_fuzzer.rebind import Rebinder, prepare_runstatedir, shadow_path

from conftest import FakeScope


def test_unsafe_runstatedir_aborts_before_touching_the_filesystem(tmp_path, monkeypatch):
    calls = []
    monkeypatch.setattr(shutil, "rmtree", lambda *a, **kw: calls.append("rmtree"))
    monkeypatch.setattr(Path, "mkdir", lambda *a, **kw: calls.append("mkdir"))

    target = tmp_path / "important-data"
    with pytest.raises(UnsafeRunstatedirError):
        prepare_runstatedir(target)
    assert calls == []


def test_unsafe_runstatedir_is_a_setup_error():
    assert issubclass(UnsafeRunstatedirError, SetupError)


def test_prepare_wipes_previous_contents(tmp_path):
    root = tmp_path / "frr-cli-fuzzer"
    (root / "old").mkdir(parents=True)
    (root / "old" / "bgpd.log").write_text("stale")

    assert prepare_runstatedir(root) == root
    assert root.is_dir()
    assert list(root.iterdir()) == []


def test_shadow_path_mirrors_absolute_path(tmp_path):
    assert shadow_path(tmp_path, "/etc/frr") == tmp_path / "etc" / "frr"


def test_rebind_creates_directories_and_mounts(tmp_path, runstatedir):
    scope = FakeScope()
    real = tmp_path / "etc" / "frr"
    source = Rebinder(scope, runstatedir).rebind(real)

    assert source == shadow_path(runstatedir, real)
    assert source.is_dir()
    assert real.is_dir()
    assert scope.runs == [["mount", "--bind", str(source), str(real)]]


def test_rebind_is_idempotent(tmp_path, runstatedir):
    scope = FakeScope()
    rebinder = Rebinder(scope, runstatedir)
    real = tmp_path / "var" / "run" / "frr"

    first = rebinder.rebind(real)
    second = rebinder.rebind(real)

    assert first == second
    assert len(scope.runs) == 1


def test_failed_mount_is_fatal(tmp_path, runstatedir):
    scope = FakeScope()
    scope.run = lambda argv, stdout=None, stderr=None: 32
    with pytest.raises(SetupError):
        Rebinder(scope, runstatedir).rebind(tmp_path / "etc" / "frr")
