"""
main.py — Pipeline orchestration and CLI for Tender Summary.

A pipeline instance is bound to one summarization mode:

  mock  — the deterministic detectors in summarizer.py (offline, instant)
  api   — the OpenRouter delegate in llm_summarizer.py

The remote summarizer is injected rather than imported at call sites, so
the HTTP service and the tests can swap it without touching the network.
Targeted questions go through queries.answer_query() first and only fall
back to a full summary when no intent matches, in either mode.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from tender_summary.config import config
from tender_summary.ingestion import load_document
from tender_summary.llm_summarizer import SummarizerAPIError, summarize_remote
from tender_summary.queries import answer_query
from tender_summary.schemas import QueryResponse, SummaryResult
from tender_summary.summarizer import summarize

logger = logging.getLogger("tender_summary")

MODES = ("mock", "api")


class TenderSummaryPipeline:
    """
    Load → (answer | summarize) for a single document.

    Usage:
        pipeline = TenderSummaryPipeline(mode="mock")
        result = pipeline.run("tenders/MOD-2024-001.pdf")
        print(json.dumps(result, indent=2))
    """

    def __init__(
        self,
        mode: str = "mock",
        remote_summarizer: Optional[Callable[[str], SummaryResult]] = None,
    ):
        if mode not in MODES:
            raise ValueError(f"Unknown mode '{mode}'. Expected one of: {', '.join(MODES)}")
        self.mode = mode
        self._remote = remote_summarizer or summarize_remote

    def summarize_text(self, text: str) -> SummaryResult:
        """Summarize already-extracted text with this pipeline's mode."""
        text = _bound_text(text)
        if self.mode == "api":
            return self._remote(text)
        return summarize(text)

    def ask(self, text: str, prompt: str) -> QueryResponse:
        """Quick answer when the prompt matches an intent, full summary otherwise."""
        answer = answer_query(prompt, _bound_text(text))
        if answer is not None:
            return QueryResponse(prompt=prompt, answer=answer)
        return QueryResponse(prompt=prompt, summary=self.summarize_text(text))

    def run(
        self,
        file_path: str,
        query: Optional[str] = None,
        output_path: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Load a document and summarize it (or answer `query` about it).

        Returns a JSON-ready dict: the SummaryResult fields for a plain
        run, or the QueryResponse fields when a query was given.
        """
        start = time.time()
        path = Path(file_path)
        logger.info("Processing: %s (mode=%s)", path.name, self.mode)

        text = load_document(file_path)
        if not text.strip():
            logger.warning("No text extracted from %s; summary will be empty.", path.name)

        if query:
            result = self.ask(text, query).model_dump(exclude_none=True)
        else:
            result = self.summarize_text(text).model_dump()

        logger.info("Done in %.2fs", time.time() - start)

        if output_path:
            os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(result, f, indent=2, ensure_ascii=False)
            logger.info("Output written to: %s", output_path)

        return result


def _bound_text(text: str) -> str:
    if len(text) > config.max_text_chars:
        logger.warning(
            "Input is %d chars; truncating to %d before detection.",
            len(text), config.max_text_chars,
        )
        return text[: config.max_text_chars]
    return text


def main(argv: Optional[list] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="tender-summary",
        description="Summarize procurement/tender documents for government officials",
    )
    parser.add_argument("file", help="Path to document (PDF, TXT, DOCX, JPG, PNG)")
    parser.add_argument(
        "--mode", "-m", choices=MODES, default=config.api.default_mode,
        help="mock = offline detectors, api = OpenRouter model",
    )
    parser.add_argument("--query", "-q", default=None, help="Ask a specific question instead")
    parser.add_argument("--output", "-o", default=None, help="JSON output path (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else config.log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    pipeline = TenderSummaryPipeline(mode=args.mode)

    try:
        result = pipeline.run(args.file, query=args.query, output_path=args.output)
    except FileNotFoundError as exc:
        logger.error("File not found: %s", exc)
        return 1
    except ValueError as exc:
        logger.error("Invalid input: %s", exc)
        return 1
    except SummarizerAPIError as exc:
        logger.error("API mode failed: %s", exc)
        return 1

    if args.output is None:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
