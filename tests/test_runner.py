"""Tests for explain_me/runner.py — locating and installing llama-cli."""

import hashlib
import os
from unittest.mock import patch

import pytest

from explain_me.models import RunnerUnavailable
from explain_me.runner import (
    RUNNER_NAME,
    install_runner,
    resolve_runner,
    runner_from_env,
    sha256sum,
)


@pytest.fixture
def bundled(tmp_path):
    """A fake bundled binary outside the cache directory."""
    src = tmp_path / "pkg" / RUNNER_NAME
    src.parent.mkdir()
    src.write_bytes(b"binary-v1")
    return src


# ---------------------------------------------------------------------------
# sha256sum
# ---------------------------------------------------------------------------


def test_sha256sum_matches_hashlib(tmp_path):
    f = tmp_path / "f"
    f.write_bytes(b"hello")
    assert sha256sum(f) == hashlib.sha256(b"hello").hexdigest()


def test_sha256sum_missing_file_is_none(tmp_path):
    assert sha256sum(tmp_path / "missing") is None


# ---------------------------------------------------------------------------
# install_runner
# ---------------------------------------------------------------------------


def test_install_runner_copies_and_makes_executable(tmp_path, bundled):
    cache = tmp_path / "cache" / "bin"
    target = install_runner(bundled, cache)
    assert target == cache / RUNNER_NAME
    assert target.read_bytes() == b"binary-v1"
    assert os.access(target, os.X_OK)


def test_install_runner_skips_identical_copy(tmp_path, bundled):
    cache = tmp_path / "cache"
    install_runner(bundled, cache)
    with patch("explain_me.runner.shutil.copyfile") as copy:
        install_runner(bundled, cache)
    copy.assert_not_called()


def test_install_runner_replaces_stale_copy(tmp_path, bundled):
    cache = tmp_path / "cache"
    cache.mkdir()
    (cache / RUNNER_NAME).write_bytes(b"binary-v0")
    target = install_runner(bundled, cache)
    assert target.read_bytes() == b"binary-v1"


def test_install_runner_clears_quarantine_on_macos(tmp_path, bundled):
    with (
        patch("explain_me.runner.sys.platform", "darwin"),
        patch("explain_me.runner.subprocess.run") as run,
    ):
        target = install_runner(bundled, tmp_path / "cache")
    cmd = run.call_args[0][0]
    assert cmd == ["xattr", "-d", "com.apple.quarantine", str(target)]


def test_install_runner_quarantine_failure_is_not_fatal(tmp_path, bundled):
    with (
        patch("explain_me.runner.sys.platform", "darwin"),
        patch("explain_me.runner.subprocess.run", side_effect=FileNotFoundError()),
    ):
        target = install_runner(bundled, tmp_path / "cache")
    assert target.exists()


def test_install_runner_write_failure_raises(tmp_path, bundled):
    with (
        patch("explain_me.runner.shutil.copyfile", side_effect=PermissionError("ro")),
        pytest.raises(RunnerUnavailable, match="Failed to install"),
    ):
        install_runner(bundled, tmp_path / "cache")


# ---------------------------------------------------------------------------
# resolve_runner
# ---------------------------------------------------------------------------


def test_resolve_runner_explicit_path(tmp_path):
    exe = tmp_path / "my-llama"
    exe.write_bytes(b"")
    assert resolve_runner(exe) == exe


def test_resolve_runner_explicit_missing_raises(tmp_path):
    with pytest.raises(RunnerUnavailable, match="Runner not found"):
        resolve_runner(tmp_path / "nope")


def test_resolve_runner_prefers_bundled_over_path(tmp_path, bundled):
    cache = tmp_path / "cache"
    with (
        patch("explain_me.runner.bundled_runner", return_value=bundled),
        patch("explain_me.runner.shutil.which", return_value="/usr/bin/llama-cli"),
    ):
        got = resolve_runner(cache_dir=cache)
    assert got == cache / RUNNER_NAME


def test_resolve_runner_falls_back_to_path(tmp_path):
    with (
        patch("explain_me.runner.bundled_runner", return_value=None),
        patch("explain_me.runner.shutil.which", return_value="/usr/bin/llama-cli"),
    ):
        got = resolve_runner(cache_dir=tmp_path)
    assert str(got) == "/usr/bin/llama-cli"


def test_resolve_runner_nothing_found_raises(tmp_path):
    with (
        patch("explain_me.runner.bundled_runner", return_value=None),
        patch("explain_me.runner.shutil.which", return_value=None),
        pytest.raises(RunnerUnavailable, match="not found"),
    ):
        resolve_runner(cache_dir=tmp_path)


# ---------------------------------------------------------------------------
# runner_from_env
# ---------------------------------------------------------------------------


def test_runner_from_env(monkeypatch):
    monkeypatch.setenv("LLAMA_CLI_PATH", "/opt/llama-cli")
    assert runner_from_env() == "/opt/llama-cli"


def test_runner_from_env_empty_is_none(monkeypatch):
    monkeypatch.setenv("LLAMA_CLI_PATH", "")
    assert runner_from_env() is None
