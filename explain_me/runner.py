"""Locate or install the ``llama-cli`` runner executable.

Resolution order (first hit wins):

1. An explicit path (``--runner`` or ``LLAMA_CLI_PATH``).
2. A binary bundled as package data at ``explain_me/bin/llama-cli``, copied
   into a cache directory (``~/.local/bin`` by default).  The copy is only
   rewritten when its SHA-256 differs from the bundled binary.
3. ``llama-cli`` on ``PATH``.

The cache directory is shared with other tools and is never removed here.
"""

import hashlib
import logging
import os
import shutil
import subprocess
import sys
from importlib import resources
from pathlib import Path

from explain_me.models import RunnerUnavailable

logger = logging.getLogger(__name__)

RUNNER_NAME = "llama-cli"


def default_cache_dir() -> Path:
    """Return ``~/.local/bin``, where the bundled runner is installed."""
    return Path.home() / ".local" / "bin"


def sha256sum(path: Path) -> str | None:
    """Return the hex SHA-256 of ``path``, or ``None`` if it cannot be read."""
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError:
        return None


def bundled_runner() -> Path | None:
    """Return the path of the bundled runner binary, if the package ships one."""
    candidate = resources.files("explain_me") / "bin" / RUNNER_NAME
    if not candidate.is_file():
        return None
    return Path(str(candidate))


def install_runner(source: Path, cache_dir: Path) -> Path:
    """Copy ``source`` into ``cache_dir`` unless an identical copy is there.

    Returns:
        Path of the installed executable.

    Raises:
        RunnerUnavailable: if the copy cannot be written.
    """
    target = cache_dir / RUNNER_NAME
    wanted = sha256sum(source)
    if wanted is None:
        raise RunnerUnavailable(f"Bundled runner is unreadable: {source}")
    if sha256sum(target) == wanted:
        logger.debug("Cached runner is up to date: %s", target)
        return target

    logger.info("Installing %s to %s", RUNNER_NAME, target)
    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        target.chmod(0o755)
    except OSError as exc:
        raise RunnerUnavailable(f"Failed to install {RUNNER_NAME}: {exc}") from exc

    if sys.platform == "darwin":
        _clear_quarantine(target)
    return target


def _clear_quarantine(path: Path) -> None:
    """Remove the macOS quarantine attribute so Gatekeeper allows execution."""
    try:
        subprocess.run(
            ["xattr", "-d", "com.apple.quarantine", str(path)],
            capture_output=True,
            check=False,
        )
    except OSError as exc:
        logger.debug("Could not clear quarantine flag on %s: %s", path, exc)


def resolve_runner(
    explicit: str | Path | None = None, cache_dir: Path | None = None
) -> Path:
    """Return a usable ``llama-cli`` path.

    Args:
        explicit:  Path given by the user; when set it must exist.
        cache_dir: Install location for the bundled binary
                   (default ``~/.local/bin``).

    Raises:
        RunnerUnavailable: if no runner can be found.
    """
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise RunnerUnavailable(f"Runner not found: {path}")
        return path

    bundled = bundled_runner()
    if bundled is not None:
        return install_runner(bundled, cache_dir or default_cache_dir())

    on_path = shutil.which(RUNNER_NAME)
    if on_path:
        return Path(on_path)

    raise RunnerUnavailable(
        f"{RUNNER_NAME} not found: pass --runner, set LLAMA_CLI_PATH, "
        f"or put {RUNNER_NAME} on PATH"
    )


def runner_from_env() -> str | None:
    """Return ``LLAMA_CLI_PATH`` if set and non-empty."""
    return os.environ.get("LLAMA_CLI_PATH") or None
