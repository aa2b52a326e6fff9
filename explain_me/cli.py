"""Command-line interface for explain-me.

Entry point: ``explain-me`` (configured in ``pyproject.toml``).

Usage:
    explain-me -f FILE [options]     # single-file mode
    explain-me -d DIR [options]      # every file directly inside DIR
    explain-me --chat-mode           # interactive session with the model

Key options:
    --prompt, --summary, --bug-check, --runner,
    --n-gpu-layers, --max-tokens, --verbose/--no-verbose, --log-file.

``MODEL_PATH`` must name the model file; it may be set in a ``.env`` file.
``LLAMA_CLI_PATH`` optionally points at the runner binary.
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from explain_me.batch import run_batch
from explain_me.chat import start_chat
from explain_me.log import setup_logging
from explain_me.models import (
    AnalysisError,
    AnalysisResult,
    Config,
    ExplainError,
    RunnerUnavailable,
    mode_from_flags,
)
from explain_me.pipeline import analyze_file
from explain_me.runner import resolve_runner, runner_from_env

logger = logging.getLogger(__name__)

USAGE = (
    'Usage: explain-me -f <file_path> OR -d <directory_path> '
    '[--prompt "your prompt"] [--summary] [--bug-check] [--chat-mode]'
)


def _positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return parsed


def _non_negative_int(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return parsed


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI arguments, validate environment, and run explain-me."""
    load_dotenv()

    parser = _build_parser()
    args = parser.parse_args()

    # Configure logging before any other output
    log_file = Path(args.log_file) if args.log_file else None
    setup_logging(verbose=args.verbose, log_file=log_file)

    model_path = os.environ.get("MODEL_PATH", "")
    if not model_path:
        logger.error("❌ MODEL_PATH environment variable is not set")
        sys.exit(1)

    if not (args.chat_mode or args.file or args.dir):
        print(f"❌ {USAGE}", file=sys.stderr)
        sys.exit(1)

    try:
        runner_path = resolve_runner(args.runner or runner_from_env())
    except RunnerUnavailable as exc:
        logger.error("❌ Failed to locate llama-cli: %s", exc)
        sys.exit(1)

    config = Config(
        model_path=Path(model_path),
        custom_instruction=args.prompt,
        mode=mode_from_flags(summary=args.summary, bug_check=args.bug_check),
        n_gpu_layers=args.n_gpu_layers,
        max_tokens=args.max_tokens,
    )

    if args.chat_mode:
        _run_chat(runner_path, config)
    elif args.file:
        _run_single(Path(args.file), config, runner_path)
    else:
        _run_dir(Path(args.dir), config, runner_path)


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------


def _print_result(result: AnalysisResult) -> None:
    print(f"📄 {result.file_path}\n{result.answer}\n", flush=True)


def _run_chat(runner_path: Path, config: Config) -> None:
    try:
        start_chat(runner_path, config.model_path)
    except ExplainError as exc:
        logger.error("❌ Chat mode failed: %s", exc)
        sys.exit(1)


def _run_single(file_path: Path, config: Config, runner_path: Path) -> None:
    """Analyze one file and print the answer; any failure is fatal."""
    if not file_path.is_file():
        logger.error("❌ File not found: %s", file_path)
        sys.exit(1)

    logger.info("🔍 Analyzing %s...", file_path)
    try:
        result = analyze_file(file_path, config, runner_path)
    except AnalysisError as exc:
        logger.error("❌ %s", exc)
        sys.exit(1)
    _print_result(result)


def _run_dir(directory: Path, config: Config, runner_path: Path) -> None:
    """Analyze every file in ``directory``; failures do not stop the run."""
    if not directory.is_dir():
        logger.error("❌ Directory not found: %s", directory)
        sys.exit(1)

    try:
        report = run_batch(directory, config, runner_path, on_result=_print_result)
    except OSError as exc:
        logger.error("❌ Failed to read directory: %s", exc)
        sys.exit(1)

    if report.processed == 0 and report.failed == 0:
        logger.warning("⚠️ No files found in the directory")
        return

    logger.info("Done — analyzed: %d, failed: %d", report.processed, report.failed)

    if report.failed_files:
        logger.error("Failed files:")
        for ff in report.failed_files:
            logger.error("  %s: %s", ff.file_path, ff.error)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="explain-me",
        description=(
            "Explain, summarize, or audit source code with a local LLM via llama-cli. "
            "Analyzes a single file (-f) or every file in a directory (-d)."
        ),
    )

    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "-f",
        "--file",
        metavar="PATH",
        help="Path to a single file to analyze.",
    )
    source_group.add_argument(
        "-d",
        "--dir",
        metavar="DIR",
        help="Path to a directory; every file directly inside it is analyzed.",
    )

    parser.add_argument(
        "--prompt",
        metavar="TEXT",
        default="",
        help="Custom instruction to use instead of the built-in ones.",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        default=False,
        help="Summarize the code in English.",
    )
    parser.add_argument(
        "--bug-check",
        action="store_true",
        default=False,
        help="Analyze the code for bugs, vulnerabilities, and bad practices.",
    )
    parser.add_argument(
        "--chat-mode",
        action="store_true",
        default=False,
        help="Start an interactive chat session with the model.",
    )
    parser.add_argument(
        "--runner",
        metavar="PATH",
        default=None,
        help="Path to the llama-cli binary (default: LLAMA_CLI_PATH, bundled, or PATH).",
    )
    parser.add_argument(
        "--n-gpu-layers",
        metavar="N",
        type=_non_negative_int,
        default=1,
        help="Number of model layers to offload to the GPU (default: 1).",
    )
    parser.add_argument(
        "--max-tokens",
        metavar="N",
        type=_positive_int,
        default=512,
        help="Maximum number of tokens to generate per file (default: 512).",
    )
    parser.add_argument(
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable DEBUG-level logging, including runner stderr (default: off).",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        default=None,
        help="Also write log output to FILE.",
    )

    return parser


if __name__ == "__main__":
    main()
