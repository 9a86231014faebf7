"""Local, network-free heuristic scoring of prompt text."""

from __future__ import annotations

import re

from .model import PromptConfig, PromptScore

# Technique ids that reward structure (chain-of-thought and mega-prompt families)
REASONING_TECHNIQUES = frozenset({"cot", "mega_prompt"})

CLARITY_CAP = 30
SPECIFICITY_CAP = 30
STRUCTURE_CAP = 40
TOTAL_CAP = 100

_WHITESPACE = re.compile(r"\s+")


def count_words(prompt: str) -> int:
    """Number of pieces left after splitting on whitespace runs.

    Leading or trailing whitespace yields an empty piece, which is counted.
    """
    return len(_WHITESPACE.split(prompt))


def _clarity(prompt: str) -> int:
    points = 0
    words = count_words(prompt)
    if words > 20:
        points += 10
    if words > 50:
        points += 10
    if "?" in prompt:
        points += 5
    lowered = prompt.lower()
    if "please" in lowered or "ensure" in lowered:
        points += 5
    return min(points, CLARITY_CAP)


def _specificity(config: PromptConfig) -> int:
    points = 0
    if config.context and len(config.context) > 20:
        points += 10
    if config.examples:
        points += 10
    if config.constraints:
        points += 5
    if config.goal:
        points += 5
    return min(points, SPECIFICITY_CAP)


def _structure(prompt: str, config: PromptConfig) -> int:
    points = 0
    lines = [line for line in prompt.split("\n") if line.strip()]
    if len(lines) > 3:
        points += 10
    if len(lines) > 5:
        points += 10
    if "1." in prompt or "-" in prompt:
        points += 10
    if config.technique.id in REASONING_TECHNIQUES:
        points += 10
    return min(points, STRUCTURE_CAP)


def score_prompt(prompt: str, config: PromptConfig) -> PromptScore:
    """Grade prompt text on clarity, specificity and structure.

    Deterministic: identical (prompt, config) pairs always yield identical scores.
    """
    clarity = _clarity(prompt)
    specificity = _specificity(config)
    structure = _structure(prompt, config)
    return PromptScore(
        clarity=clarity,
        specificity=specificity,
        structure=structure,
        total=min(clarity + specificity + structure, TOTAL_CAP),
    )
