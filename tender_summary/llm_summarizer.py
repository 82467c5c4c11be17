"""
llm_summarizer.py — "API mode" summarization through OpenRouter.

The remote path is a thin delegate: build the officer prompt, send it to
an OpenRouter chat-completions model through the OpenAI SDK, and parse
the reply into the same SummaryResult that mock mode produces.

Every failure is surfaced as a SummarizerAPIError subclass with a message
that can go straight to the user: missing key, transport failure,
non-success status, or a reply we could not turn into a SummaryResult.
Only transport failures are retried; a 4xx will not fix itself.
"""

from __future__ import annotations

import json
import logging
import os
import re
import time
from typing import Any, Dict, Optional

import openai
from pydantic import ValidationError

from tender_summary.config import config
from tender_summary.schemas import SummaryResult

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "You are a summarizer for Indian government procurement officers. "
    "From the provided document extract the most important bullets an officer "
    "needs to act on: procurement value, submission deadline(s), eligibility "
    "criteria, required documents, penalties, key contacts, and suggested next "
    "steps. Return JSON with keys short_summary, relevance_to_officials (array), "
    "action_items (array), confidence_estimate.\n\n"
    "Document text:\n{text}"
)


class SummarizerAPIError(RuntimeError):
    """Base class for API-mode failures."""


class MissingAPIKeyError(SummarizerAPIError):
    pass


class APIRequestError(SummarizerAPIError):
    pass


class APIStatusError(SummarizerAPIError):
    def __init__(self, status_code: int):
        super().__init__(f"API request failed with status: {status_code}")
        self.status_code = status_code


class ReplyParseError(SummarizerAPIError):
    pass


def get_api_key() -> str:
    """Read the OpenRouter key from the environment at call time."""
    api_key = os.getenv(config.llm.api_key_env, "").strip()
    if not api_key:
        raise MissingAPIKeyError(
            f"OpenRouter API key not found. Please set {config.llm.api_key_env} "
            f"environment variable or use mock mode."
        )
    return api_key


def build_client(api_key: str) -> openai.OpenAI:
    # SDK retries are disabled; _complete() owns the retry policy.
    return openai.OpenAI(
        api_key=api_key,
        base_url=config.llm.base_url,
        timeout=config.llm.timeout_seconds,
        max_retries=0,
        default_headers={
            "HTTP-Referer": config.llm.referer,
            "X-Title": config.llm.title,
        },
    )


def summarize_remote(text: str, client: Optional[Any] = None) -> SummaryResult:
    """
    Summarize text with the remote model.

    `client` is anything exposing chat.completions.create(); tests pass a
    fake. When omitted, a real OpenAI client is built for OpenRouter,
    which requires the API key to be set.

    Raises:
        SummarizerAPIError: one of its subclasses, never a raw SDK error.
    """
    if client is None:
        client = build_client(get_api_key())

    prompt = SUMMARY_PROMPT.format(text=text)
    content = _complete(client, prompt)

    parsed = _parse_json_output(content)
    if parsed is None:
        logger.error("Could not parse API reply as JSON. First 500 chars: %s", content[:500])
        raise ReplyParseError("Failed to parse summary JSON: reply is not a JSON object")

    try:
        result = SummaryResult.model_validate(parsed)
    except ValidationError as exc:
        raise ReplyParseError(f"Failed to parse summary JSON: {exc}") from exc

    logger.info(
        "Remote summary: %d relevance points, confidence=%s",
        len(result.relevance_to_officials), result.confidence_estimate,
    )
    return result


def _complete(client: Any, prompt: str) -> str:
    """Send the prompt, retrying transport failures with exponential backoff."""
    last_error: Optional[Exception] = None

    for attempt in range(1, config.llm.max_retries + 1):
        try:
            response = client.chat.completions.create(
                model=config.llm.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=config.llm.max_tokens,
                temperature=config.llm.temperature,
            )
        except openai.APIStatusError as exc:
            logger.error("OpenRouter returned HTTP %s", exc.status_code)
            raise APIStatusError(exc.status_code) from exc
        except openai.APIConnectionError as exc:
            last_error = exc
            if attempt == config.llm.max_retries:
                break
            delay = config.llm.retry_base_delay * (2 ** (attempt - 1))
            logger.warning(
                "API attempt %d/%d failed: %s. Retrying in %.1fs.",
                attempt, config.llm.max_retries, exc, delay,
            )
            time.sleep(delay)
            continue

        return _reply_content(response)

    raise APIRequestError(f"API request failed: {last_error}") from last_error


def _reply_content(response: Any) -> str:
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise ReplyParseError(f"Failed to parse API response: {exc}") from exc

    if not content or not content.strip():
        raise ReplyParseError("No content in API response")
    logger.debug("API reply: %d chars", len(content))
    return content


def _parse_json_output(text: str) -> Optional[Dict[str, Any]]:
    """
    Multi-strategy JSON parser for model replies.

    Tried in order: direct parse, strip markdown fences, then the first
    {...} block in the text. Anything that is not a JSON object is a miss.
    """
    candidates = [text]

    cleaned = re.sub(r"```(?:json)?\s*", "", text).strip().rstrip("`")
    candidates.append(cleaned)

    match = re.search(r"\{[\s\S]*\}", cleaned)
    if match:
        candidates.append(match.group())

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None
