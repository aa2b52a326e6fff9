"""Batch processing — analyze every file directly inside a directory.

Files are processed one after another; each runner call blocks until the
model has finished.  A failure on one file is recorded in the
``BatchReport`` and the run moves on to the next file.
"""

import logging
import sys
from pathlib import Path
from typing import Callable

from tqdm.auto import tqdm

from explain_me.models import (
    AnalysisError,
    AnalysisResult,
    BatchReport,
    Config,
    FailedFile,
)
from explain_me.pipeline import analyze_file

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# File discovery
# ---------------------------------------------------------------------------


def list_files(directory: Path) -> list[Path]:
    """Return the regular files directly inside ``directory``, sorted.

    Subdirectories are not descended into.

    Raises:
        OSError: if ``directory`` cannot be listed.
    """
    return sorted(p for p in directory.iterdir() if p.is_file())


# ---------------------------------------------------------------------------
# Batch runner
# ---------------------------------------------------------------------------


def run_batch(
    directory: Path,
    config: Config,
    runner_path: Path,
    on_result: Callable[[AnalysisResult], None] | None = None,
) -> BatchReport:
    """Analyze all files in ``directory`` and return an aggregate report.

    Args:
        directory:   Directory to list (non-recursive).
        config:      Runtime configuration.
        runner_path: Resolved ``llama-cli`` executable.
        on_result:   Called with each successful result as soon as it is
                     available (the CLI prints answers from here).

    Returns:
        A ``BatchReport`` with counts, results, and details of failed files.
    """
    files = list_files(directory)
    total = len(files)
    logger.info("Discovered files: %d", total)

    results: list[AnalysisResult] = []
    failed_files: list[FailedFile] = []

    show_progress = sys.stderr.isatty()

    with tqdm(
        total=total,
        desc="Analyze",
        unit="file",
        disable=not show_progress,
        leave=True,
    ) as progress:
        for idx, file_path in enumerate(files, start=1):
            logger.info("Analyzing [%d/%d]: %s", idx, total, file_path)
            try:
                result = analyze_file(file_path, config, runner_path)
            except AnalysisError as exc:
                logger.error("  [%d/%d] Failed: %s", idx, total, exc)
                failed_files.append(
                    FailedFile(file_path=str(file_path), error=str(exc.cause))
                )
            else:
                results.append(result)
                if on_result is not None:
                    on_result(result)
            finally:
                progress.update(1)
                progress.set_postfix(ok=len(results), failed=len(failed_files))

    return BatchReport(
        processed=len(results),
        failed=len(failed_files),
        results=results,
        failed_files=failed_files,
    )
