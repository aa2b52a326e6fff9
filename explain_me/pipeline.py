"""Per-file orchestration — turns one source file into an ``AnalysisResult``.

One runner call per file: read, build prompt, run ``llama-cli``, extract the
answer.  There is no retry; a file whose output cannot be parsed is reported
with the raw runner output logged for diagnosis.
"""

import logging
from pathlib import Path

from explain_me.llm import extract_answer, run_model
from explain_me.models import (
    AnalysisError,
    AnalysisResult,
    Config,
    ExtractionError,
    PromptRequest,
)
from explain_me.prompts import build_request_prompt

logger = logging.getLogger(__name__)


def analyze_file(file_path: Path, config: Config, runner_path: Path) -> AnalysisResult:
    """Analyze a single file end-to-end and return the model's answer.

    Steps
    -----
    1. Read the file as UTF-8 (undecodable bytes are replaced).
    2. Build the prompt from the configured custom instruction or mode.
    3. Run the model once and extract the answer from its stdout.

    Raises:
        AnalysisError: wraps any ``OSError``, ``RunnerInvocationFailed``,
            ``ExtractionError``, or other exception that occurs.
    """
    try:
        return _run_analysis(file_path, config, runner_path)
    except AnalysisError:
        raise
    except Exception as e:
        raise AnalysisError(file_path, e) from e


def read_source(file_path: Path) -> str:
    """Return the file's text; invalid UTF-8 sequences become U+FFFD."""
    return file_path.read_text(encoding="utf-8", errors="replace")


def _run_analysis(file_path: Path, config: Config, runner_path: Path) -> AnalysisResult:
    source_text = read_source(file_path)

    request = PromptRequest(
        source_text=source_text,
        custom_instruction=config.custom_instruction,
        mode=config.mode,
    )
    prompt = build_request_prompt(request)
    logger.debug(
        "Built %s prompt for %s (%s chars)",
        "custom" if request.custom_instruction else request.mode,
        file_path.name,
        f"{len(prompt):,}",
    )

    raw = run_model(
        runner_path,
        config.model_path,
        prompt,
        n_gpu_layers=config.n_gpu_layers,
        max_tokens=config.max_tokens,
    )
    try:
        answer = extract_answer(raw)
    except ExtractionError as exc:
        logger.error(
            "Failed to parse model response for %s\nRaw output:\n%s",
            file_path,
            exc.raw_output,
        )
        raise

    return AnalysisResult(file_path=str(file_path), answer=answer)
