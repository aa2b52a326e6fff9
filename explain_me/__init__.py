"""
explain-me — ask a local LLM to explain, summarize, or audit source code.

Builds ``[INST] … [/INST]`` prompts from source files, runs them through a
locally installed ``llama-cli`` binary, and extracts the model's answer from
the runner's echoed output.
"""

__version__ = "0.1.0"
