"""Runner invocation and response extraction — wraps the ``llama-cli`` binary.

``run_model`` performs one blocking one-shot generation and returns the
runner's full stdout.  ``llama-cli`` echoes the prompt before the generated
text, so ``extract_answer`` locates the closing ``[/INST]`` delimiter and
strips the end-of-generation markers the runner appends.
"""

import logging
import subprocess
import time
from pathlib import Path

from explain_me.models import EmptyAnswer, NoDelimiterFound, RunnerInvocationFailed
from explain_me.prompts import INST_CLOSE

logger = logging.getLogger(__name__)

#: End-of-generation markers.  ``extract_answer`` cuts at the earliest match.
CUTOFF_MARKERS = ("> EOF by user", "> EOF", "<|endoftext|>")


# ---------------------------------------------------------------------------
# Runner invocation
# ---------------------------------------------------------------------------


def build_command(
    runner_path: Path,
    model_path: Path,
    prompt: str,
    n_gpu_layers: int = 1,
    max_tokens: int = 512,
) -> list[str]:
    """Return the ``llama-cli`` argv for a one-shot generation."""
    return [
        str(runner_path),
        "-m",
        str(model_path),
        "-p",
        prompt,
        "-ngl",
        str(n_gpu_layers),
        "-n",
        str(max_tokens),
    ]


def run_model(
    runner_path: Path,
    model_path: Path,
    prompt: str,
    n_gpu_layers: int = 1,
    max_tokens: int = 512,
) -> str:
    """Run ``llama-cli`` once and return its captured stdout.

    Standard error is only diagnostic: it is logged at DEBUG when the process
    succeeds and attached to the exception when it does not.

    Raises:
        RunnerInvocationFailed: if the runner cannot be started or exits
            with a non-zero status.
    """
    cmd = build_command(runner_path, model_path, prompt, n_gpu_layers, max_tokens)
    logger.info("Running model  runner=%s  model=%s", runner_path, model_path)
    logger.debug(
        "Prompt size: %s chars, -ngl %d, -n %d",
        f"{len(prompt):,}",
        n_gpu_layers,
        max_tokens,
    )
    t0 = time.monotonic()
    try:
        proc = subprocess.run(
            cmd,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise RunnerInvocationFailed(
            f"Could not start {runner_path}: {exc}"
        ) from exc
    elapsed = time.monotonic() - t0

    if proc.returncode != 0:
        raise RunnerInvocationFailed(
            f"llama-cli exited with status {proc.returncode}\n"
            f"STDERR: {proc.stderr}\nSTDOUT: {proc.stdout}",
            returncode=proc.returncode,
            stderr=proc.stderr,
            stdout=proc.stdout,
        )

    if proc.stderr:
        logger.debug(
            "Runner stderr (%s chars):\n%s", f"{len(proc.stderr):,}", proc.stderr
        )
    logger.info("Response received (%.1fs, %s chars)", elapsed, f"{len(proc.stdout):,}")
    return proc.stdout


# ---------------------------------------------------------------------------
# Response extraction
# ---------------------------------------------------------------------------


def extract_answer(raw_output: str) -> str:
    """Extract the model's answer from the runner's echoed output.

    Steps:
        1. Require at least one ``[/INST]``.
        2. Keep the text after the *last* ``[/INST]``; the model may restate
           the delimiter, and the genuine answer follows the final one.
        3. Cut at the earliest cutoff marker (``> EOF by user``, ``> EOF``,
           ``<|endoftext|>``).
        4. Drop any stray ``[/INST]`` left over and trim whitespace.

    Raises:
        NoDelimiterFound: if ``raw_output`` contains no ``[/INST]``.
        EmptyAnswer: if nothing but whitespace or markers follows it.
    """
    if INST_CLOSE not in raw_output:
        raise NoDelimiterFound(
            f"No {INST_CLOSE} found in runner output", raw_output=raw_output
        )

    answer = raw_output.rsplit(INST_CLOSE, 1)[1].strip()
    answer = _cut_at_markers(answer)
    answer = answer.replace(INST_CLOSE, "").strip()

    if not answer:
        raise EmptyAnswer(
            "Could not parse a useful response from runner output",
            raw_output=raw_output,
        )
    return answer


def _cut_at_markers(text: str) -> str:
    """Truncate ``text`` at the earliest occurrence of any cutoff marker."""
    positions = [text.find(m) for m in CUTOFF_MARKERS]
    found = [p for p in positions if p != -1]
    if not found:
        return text
    return text[: min(found)]
