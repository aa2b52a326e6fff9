"""Interactive chat — relay the terminal to ``llama-cli --interactive``.

A daemon thread copies the runner's stdout to the terminal while the main
loop reads questions and writes them to the runner's stdin.  The two
directions share no state.  Typing ``exit`` (or sending EOF) kills the runner.
"""

import logging
import subprocess
import sys
import threading
from pathlib import Path
from typing import IO

from explain_me.models import RunnerInvocationFailed

logger = logging.getLogger(__name__)

PROMPT = "Question > "
EXIT_COMMAND = "exit"
_RELAY_DRAIN_S = 1.0


def build_chat_command(runner_path: Path, model_path: Path) -> list[str]:
    """Return the ``llama-cli`` argv for an interactive session."""
    return [str(runner_path), "-m", str(model_path), "--interactive"]


def _pump(source: IO[str], sink: IO[str]) -> None:
    """Copy ``source`` to ``sink`` until EOF, flushing as output arrives.

    Reads one character at a time so the runner's ``> `` turn prompt and
    partially streamed tokens show up without waiting for a newline.
    """
    for chunk in iter(lambda: source.read(1), ""):
        sink.write(chunk)
        sink.flush()


def start_chat(
    runner_path: Path,
    model_path: Path,
    stdin: IO[str] | None = None,
    stdout: IO[str] | None = None,
) -> None:
    """Run an interactive session until the user types ``exit`` or sends EOF.

    Raises:
        RunnerInvocationFailed: if the runner cannot be started.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    cmd = build_chat_command(runner_path, model_path)
    logger.debug("Starting chat: %s", " ".join(cmd))
    try:
        proc = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as exc:
        raise RunnerInvocationFailed(f"Could not start {runner_path}: {exc}") from exc

    print("🔵 Entering chat mode. Type 'exit' to quit.", file=stdout, flush=True)

    relay = threading.Thread(
        target=_pump, args=(proc.stdout, stdout), name="chat-relay", daemon=True
    )
    relay.start()

    try:
        for line in _questions(stdin, stdout):
            try:
                proc.stdin.write(line + "\n")
                proc.stdin.flush()
            except BrokenPipeError:
                logger.error("Runner closed its input; ending chat")
                break
    finally:
        proc.kill()
        proc.wait()
        relay.join(timeout=_RELAY_DRAIN_S)
        logger.debug("Chat runner exited with status %s", proc.returncode)


def _questions(stdin: IO[str], stdout: IO[str]):
    """Yield stripped input lines until EOF or the exit command."""
    while True:
        print(PROMPT, end="", file=stdout, flush=True)
        line = stdin.readline()
        if not line:
            return
        text = line.strip()
        if text.lower() == EXIT_COMMAND:
            return
        yield text
