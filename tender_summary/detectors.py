"""
detectors.py — The ordered rule table behind the heuristic summarizer.

Each detector is one independent scan of the document text: dates, money,
eligibility wording, contact details and procurement wording. A rule
either carries a compiled regex (every non-overlapping match is kept, left
to right) or a keyword set (existence check, stops at the first hit).

The order of DEFAULT_RULES is part of the output contract. Consumers
compare relevance lists positionally, so dates must come before money,
money before eligibility, and so on. Adding a sixth detector means
appending a rule in build_rules(), nothing else.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from tender_summary.config import DetectorConfig, config

logger = logging.getLogger(__name__)

# D/M/Y or D-M-Y, Y/M/D, or "Feb 28, 2024" / "February 28 2024".
# Month names are case-sensitive.
DATE_PATTERN = (
    r"\b\d{1,2}[/-]\d{1,2}[/-]\d{2,4}\b"
    r"|\b\d{4}[/-]\d{1,2}[/-]\d{1,2}\b"
    r"|\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\s+\d{1,2},?\s+\d{4}\b"
)

# Email, or an Indian mobile: optional +91 / 0 trunk prefix, then 6-9 and
# nine more digits. The lookbehind lets "+91" start a match after a space.
CONTACT_PATTERN = (
    r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"
    r"|(?<![\w+])(?:\+91|0)?[6-9]\d{9}\b"
)


@dataclass(frozen=True)
class DetectorRule:
    """
    One detector: what to look for, and what to say when it fires.

    `relevance` may contain a {matches} placeholder which is filled with
    the comma-joined matches. Keyword rules use fixed relevance text.
    """
    name: str
    relevance: str
    action_item: str
    pattern: Optional[re.Pattern] = None
    keywords: Tuple[str, ...] = ()

    def find(self, text: str) -> List[str]:
        if self.pattern is not None:
            return [m.group(0) for m in self.pattern.finditer(text)]

        lowered = text.lower()
        for keyword in self.keywords:
            if keyword in lowered:
                return [keyword]
        return []

    def describe(self, matches: Sequence[str]) -> str:
        return self.relevance.format(matches=", ".join(matches))


def _money_pattern(symbols: Sequence[str], units: Sequence[str]) -> re.Pattern:
    """
    Currency-prefixed amounts ("₹50,00,000", "₹ 1,250.50") or bare
    comma-grouped numbers followed by a unit word ("2 crore", "15 Lakh").
    Only the unit word is case-insensitive.
    """
    symbol_alt = "|".join(re.escape(s) for s in symbols)
    unit_alt = "|".join(re.escape(u) for u in units)
    return re.compile(
        rf"(?:{symbol_alt})\s*[\d,]+(?:\.\d{{2}})?"
        rf"|\b\d{{1,3}}(?:,\d{{3}})*(?:\.\d{{2}})?\s*(?i:{unit_alt})\b"
    )


def build_rules(detector_config: DetectorConfig) -> Tuple[DetectorRule, ...]:
    """Build the five detectors, in output order, from a DetectorConfig."""
    rules = (
        DetectorRule(
            name="dates",
            relevance="Deadlines found: {matches}",
            action_item="Review submission deadlines and plan accordingly",
            pattern=re.compile(DATE_PATTERN),
        ),
        DetectorRule(
            name="money",
            relevance="Financial values: {matches}",
            action_item="Verify budget allocation and financial requirements",
            pattern=_money_pattern(
                detector_config.currency_symbols, detector_config.amount_units
            ),
        ),
        DetectorRule(
            name="eligibility",
            relevance="Eligibility criteria mentioned in document",
            action_item="Review eligibility requirements and ensure compliance",
            keywords=tuple(k.lower() for k in detector_config.eligibility_keywords),
        ),
        DetectorRule(
            name="contacts",
            relevance="Contact information: {matches}",
            action_item="Save contact details for inquiries",
            pattern=re.compile(CONTACT_PATTERN),
        ),
        DetectorRule(
            name="procurement",
            relevance="Procurement/tender document identified",
            action_item="Review procurement process and requirements",
            keywords=tuple(k.lower() for k in detector_config.procurement_keywords),
        ),
    )
    logger.debug("Built %d detector rules: %s", len(rules), [r.name for r in rules])
    return rules


DEFAULT_RULES: Tuple[DetectorRule, ...] = build_rules(config.detectors)


def get_rule(name: str, rules: Optional[Sequence[DetectorRule]] = None) -> DetectorRule:
    """Look up a rule by name. Raises KeyError for unknown names."""
    for rule in rules if rules is not None else DEFAULT_RULES:
        if rule.name == name:
            return rule
    raise KeyError(f"No detector rule named '{name}'")
