"""Prompt builder for the ``[INST] … [/INST]`` instruction format.

``build_prompt`` wraps an instruction and the source text in the delimiter
pair expected by Llama/Mistral-style instruct models.  The response extractor
in ``llm.py`` relies on the closing ``[/INST]`` being echoed back by the
runner, so every prompt produced here carries both delimiters.
"""

from explain_me.models import Mode, PromptRequest

INST_OPEN = "[INST]"
INST_CLOSE = "[/INST]"

INSTRUCTIONS: dict[str, str] = {
    "bug_check": (
        "Analyze this code for bugs, vulnerabilities, or bad practices. "
        "Explain any issues found:"
    ),
    "summary": (
        "Summarize this code in English, explaining its purpose and main functions:"
    ),
    "default": "Explain what this code does:",
}


def instruction_for(mode: Mode) -> str:
    """Return the built-in instruction text for ``mode``.

    Raises:
        ValueError: if ``mode`` is not a known mode.
    """
    try:
        return INSTRUCTIONS[mode]
    except KeyError:
        raise ValueError(f"Unknown prompt mode: {mode!r}") from None


def build_prompt(
    source_text: str, custom_instruction: str = "", mode: Mode = "default"
) -> str:
    """Build the instruction-formatted prompt for one source file.

    Args:
        source_text:        Contents of the file being analyzed (may be empty).
        custom_instruction: User-supplied instruction; when non-empty it is
            used verbatim and ``mode`` is ignored.
        mode:               Built-in instruction to use otherwise.

    Returns:
        ``"[INST] <instruction>\\n\\n<source_text>\\n\\n[/INST]"``
    """
    instruction = custom_instruction or instruction_for(mode)
    return f"{INST_OPEN} {instruction}\n\n{source_text}\n\n{INST_CLOSE}"


def build_request_prompt(request: PromptRequest) -> str:
    """Build the prompt for a ``PromptRequest``."""
    return build_prompt(
        request.source_text,
        custom_instruction=request.custom_instruction,
        mode=request.mode,
    )
