"""Shared pytest fixtures for the explain-me test suite."""

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from explain_me.models import Config


# ---------------------------------------------------------------------------
# Logger isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_explain_me_logger():
    """Clear the explain_me logger between tests.

    Tests that call ``main()`` trigger ``setup_logging()``, which attaches
    handlers and sets ``propagate=False``.  Without this fixture the state
    leaks into subsequent tests and breaks ``caplog`` capture.
    """
    logger = logging.getLogger("explain_me")
    for h in logger.handlers[:]:
        try:
            h.close()
        except Exception:
            pass
        logger.removeHandler(h)
    logger.propagate = True
    yield
    for h in logger.handlers[:]:
        try:
            h.close()
        except Exception:
            pass
        logger.removeHandler(h)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Sample runner output (what llama-cli prints for a one-shot call)
# ---------------------------------------------------------------------------

SAMPLE_SOURCE = "func add(a,b) int { return a+b }"

SAMPLE_PROMPT = (
    "[INST] Explain what this code does:\n\n"
    "func add(a,b) int { return a+b }\n\n[/INST]"
)

SAMPLE_ANSWER = "This adds two integers."

SAMPLE_RAW_OUTPUT = SAMPLE_PROMPT + " " + SAMPLE_ANSWER + " > EOF by user"


@pytest.fixture
def sample_raw_output() -> str:
    """Echoed prompt followed by an answer and the interactive EOF marker."""
    return SAMPLE_RAW_OUTPUT


@pytest.fixture
def config(tmp_path) -> Config:
    """Config pointing at a dummy model file."""
    model_dir = tmp_path / "_fixtures"
    model_dir.mkdir(exist_ok=True)
    model = model_dir / "model.gguf"
    model.write_bytes(b"GGUF")
    return Config(model_path=model)


@pytest.fixture
def runner_path(tmp_path) -> Path:
    """A dummy file standing in for the llama-cli binary (subprocess is mocked)."""
    runner_dir = tmp_path / "_fixtures"
    runner_dir.mkdir(exist_ok=True)
    path = runner_dir / "llama-cli"
    path.write_bytes(b"#!/bin/sh\n")
    path.chmod(0o755)
    return path


def completed(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    """Build a fake ``subprocess.CompletedProcess``."""
    return MagicMock(stdout=stdout, stderr=stderr, returncode=returncode)
