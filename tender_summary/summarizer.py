"""
summarizer.py — Deterministic "mock mode" summarizer.

Runs every detector rule over the same text, folds the findings into a
SummaryResult and derives a short summary plus a coarse confidence label.
No model, no network and no state: the same text always gives the same
result, which is what makes mock mode usable offline and in tests.

Confidence is only a count of how many detector categories fired. It is
not a probability and it does not weight categories.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from tender_summary.detectors import DEFAULT_RULES, DetectorRule
from tender_summary.schemas import SUMMARY_FALLBACK, SummaryResult

logger = logging.getLogger(__name__)

SUMMARY_SENTENCES = 3
HIGH_CONFIDENCE_MIN = 3
MEDIUM_CONFIDENCE_MIN = 1


def summarize(
    text: str,
    rules: Optional[Sequence[DetectorRule]] = None,
) -> SummaryResult:
    """
    Summarize document text with the heuristic detectors.

    Never raises for str input. Empty or pattern-free text gives empty
    relevance/action lists and "low" confidence.
    """
    relevance: List[str] = []
    action_items: List[str] = []

    for rule in rules if rules is not None else DEFAULT_RULES:
        matches = rule.find(text)
        if not matches:
            continue
        # Exactly one of each per fired rule, so the lists stay aligned.
        relevance.append(rule.describe(matches))
        action_items.append(rule.action_item)
        logger.debug("Detector '%s' fired with %d match(es)", rule.name, len(matches))

    result = SummaryResult(
        short_summary=short_summary(text),
        relevance_to_officials=relevance,
        action_items=action_items,
        confidence_estimate=confidence_for(len(relevance)),
    )
    logger.info(
        "Heuristic summary: %d/%d detectors fired, confidence=%s",
        len(relevance),
        len(rules) if rules is not None else len(DEFAULT_RULES),
        result.confidence_estimate,
    )
    return result


def short_summary(text: str) -> str:
    """First three '.'-delimited segments, rejoined and trimmed."""
    segments = text.split(".")[:SUMMARY_SENTENCES]
    summary = ". ".join(segments).strip()
    return summary or SUMMARY_FALLBACK


def confidence_for(fired: int) -> str:
    """Map the number of fired detectors to a confidence label."""
    if fired >= HIGH_CONFIDENCE_MIN:
        return "high"
    elif fired >= MEDIUM_CONFIDENCE_MIN:
        return "medium"
    return "low"
