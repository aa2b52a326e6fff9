"""Pydantic models, dataclass Config, and exceptions for explain-me.

The instruction texts and delimiter template live in ``prompts.py``; this
module only defines the *shape* of the values that flow through the tool
and the error taxonomy shared by every stage.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

Mode = Literal["default", "summary", "bug_check"]
"""Which built-in instruction to use when no custom instruction is given."""

# ---------------------------------------------------------------------------
# Prompt request
# ---------------------------------------------------------------------------


class PromptRequest(BaseModel):
    """Everything needed to build one prompt for one source file.

    A non-empty ``custom_instruction`` takes precedence over ``mode``.
    Instances are immutable; one is built per analyzed file.
    """

    model_config = ConfigDict(frozen=True)

    source_text: str
    custom_instruction: str = ""
    mode: Mode = "default"


def mode_from_flags(summary: bool = False, bug_check: bool = False) -> Mode:
    """Map the ``--summary`` / ``--bug-check`` switches to a ``Mode``."""
    if bug_check:
        return "bug_check"
    if summary:
        return "summary"
    return "default"


# ---------------------------------------------------------------------------
# Results and batch reporting
# ---------------------------------------------------------------------------


class AnalysisResult(BaseModel):
    """The extracted model answer for one source file."""

    file_path: str
    answer: str


class FailedFile(BaseModel):
    """Records a single file that could not be analyzed during a batch run."""

    file_path: str
    error: str


class BatchReport(BaseModel):
    """Aggregate result of a batch run over a directory of source files."""

    processed: int
    failed: int
    results: list[AnalysisResult]
    failed_files: list[FailedFile]


# ---------------------------------------------------------------------------
# Config (dataclass — not pydantic; holds runtime settings)
# ---------------------------------------------------------------------------

#: Generation parameters passed to ``llama-cli`` on every one-shot call.
_DEFAULT_N_GPU_LAYERS = 1
_DEFAULT_MAX_TOKENS = 512


@dataclass
class Config:
    """Runtime configuration for one explain-me session.

    Attributes:
        model_path:         Path to the GGUF model file (``MODEL_PATH``).
        custom_instruction: Instruction text from ``--prompt``; overrides
                            ``mode`` when non-empty.
        mode:               Built-in instruction selected by ``--summary`` /
                            ``--bug-check``.
        n_gpu_layers:       Layers offloaded to the GPU (``-ngl``).
        max_tokens:         Maximum tokens the runner may generate (``-n``).
    """

    model_path: Path
    custom_instruction: str = ""
    mode: Mode = "default"
    n_gpu_layers: int = _DEFAULT_N_GPU_LAYERS
    max_tokens: int = _DEFAULT_MAX_TOKENS


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ExplainError(Exception):
    """Base class for every error raised by explain-me."""


class ExtractionError(ExplainError):
    """Raised when no usable answer can be extracted from runner output.

    Attributes:
        raw_output: The runner's full stdout, kept for diagnosis.
    """

    def __init__(self, message: str, raw_output: str) -> None:
        self.raw_output = raw_output
        super().__init__(message)


class NoDelimiterFound(ExtractionError):
    """The runner output never echoed the closing ``[/INST]`` marker."""


class EmptyAnswer(ExtractionError):
    """The delimiter was found but nothing meaningful followed it."""


class RunnerInvocationFailed(ExplainError):
    """Raised when ``llama-cli`` cannot start or exits with a non-zero status.

    Attributes:
        returncode: Process exit status, or ``None`` if it never started.
        stderr:     Captured standard error.
        stdout:     Captured standard output.
    """

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str = "",
        stdout: str = "",
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(message)


class RunnerUnavailable(ExplainError):
    """Raised when no ``llama-cli`` executable can be located or installed."""


class AnalysisError(ExplainError):
    """Wraps any sub-error that occurs while analyzing one file.

    Attributes:
        file_path: Path to the file that failed.
        cause:     The original exception that triggered the failure.
    """

    def __init__(self, file_path: Path, cause: Exception) -> None:
        self.file_path = file_path
        self.cause = cause
        super().__init__(f"Analysis failed for {file_path}: {cause}")
