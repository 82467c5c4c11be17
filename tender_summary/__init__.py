"""
Tender Summary — actionable summaries of procurement/tender documents.

Two summarization modes share one output schema: a deterministic,
regex-driven "mock" summarizer that works offline, and an "api" mode
that delegates to an OpenRouter-hosted LLM.
"""

__version__ = "1.0.0"
__author__ = "Tender Summary"
