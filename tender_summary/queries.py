"""
queries.py — Quick answers to targeted questions about a tender.

Officials rarely want the whole summary when they type "what is the
deadline?". This module recognises a handful of question intents by
trigger words and answers them straight from the detectors or from the
matching lines of the document. Anything it does not recognise returns
None, and the caller falls back to a full summary.

Intents are checked in table order and the first match wins, so
"submission deadline and budget" is answered as a deadline question.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from tender_summary.detectors import DATE_PATTERN, get_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryIntent:
    name: str
    triggers: Tuple[str, ...]
    heading: str
    not_found: str
    collect: Callable[[str], List[str]]


def _rule_matches(rule_name: str) -> Callable[[str], List[str]]:
    def collect(text: str) -> List[str]:
        return get_rule(rule_name).find(text)
    return collect


def _dates_any_case() -> Callable[[str], List[str]]:
    # month names match in any case here, unlike the summary's date rule
    pattern = re.compile(DATE_PATTERN, re.IGNORECASE)

    def collect(text: str) -> List[str]:
        return [m.group(0) for m in pattern.finditer(text)]
    return collect


def _lines_containing(*words: str) -> Callable[[str], List[str]]:
    def collect(text: str) -> List[str]:
        hits = []
        for line in text.split("\n"):
            lowered = line.lower()
            if any(w in lowered for w in words):
                hits.append(line.strip())
        return hits
    return collect


INTENTS: Tuple[QueryIntent, ...] = (
    QueryIntent(
        name="deadlines",
        triggers=("deadline", "due date", "submission date"),
        heading="Deadlines Found",
        not_found="No specific deadlines found in the document.",
        collect=_dates_any_case(),
    ),
    QueryIntent(
        name="financial",
        triggers=("cost", "price", "value", "amount", "budget"),
        heading="Financial Information",
        not_found="No financial information found in the document.",
        collect=_rule_matches("money"),
    ),
    QueryIntent(
        name="contacts",
        triggers=("contact", "email", "phone", "address"),
        heading="Contact Information",
        not_found="No contact information found in the document.",
        collect=_rule_matches("contacts"),
    ),
    QueryIntent(
        name="eligibility",
        triggers=("eligibility", "qualification", "criteria", "requirement"),
        heading="Eligibility Information",
        not_found="No eligibility information found in the document.",
        collect=_lines_containing("eligibility", "qualification", "criteria", "requirement"),
    ),
    QueryIntent(
        name="penalties",
        triggers=("penalty", "fine", "penalties"),
        heading="Penalty Information",
        not_found="No penalty information found in the document.",
        collect=_lines_containing("penalty", "fine", "late"),
    ),
)

DOCUMENT_TYPE_TRIGGERS = ("what is this", "type of document", "document type")


def answer_query(prompt: str, text: str) -> Optional[str]:
    """
    Answer a targeted question from the document text.

    Returns a short markdown answer, or None when the prompt does not
    match any known intent.
    """
    lowered = prompt.lower()

    for intent in INTENTS:
        if any(t in lowered for t in intent.triggers):
            findings = intent.collect(text)
            logger.info(
                "Query matched intent '%s' (%d finding(s))", intent.name, len(findings)
            )
            if not findings:
                return intent.not_found
            bullets = "\n".join(f"• {item}" for item in findings)
            return f"**{intent.heading}:**\n{bullets}"

    if any(t in lowered for t in DOCUMENT_TYPE_TRIGGERS):
        return _document_type(text)

    logger.debug("No quick-answer intent for prompt: %r", prompt[:80])
    return None


def _document_type(text: str) -> str:
    found = get_rule("procurement").find(text)
    if found:
        return (
            f"**Document Type:** This appears to be a {found[0].upper()} "
            f"document for government procurement."
        )
    return "**Document Type:** Government procurement document"
