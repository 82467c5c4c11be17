"""
schemas.py — Pydantic v2 models for the summary contract.

SummaryResult is the interchange format shared by both summarization
paths. The heuristic extractor builds it directly; the OpenRouter path
parses it out of the model's free-form reply, so the validators here are
the only thing standing between a sloppy LLM answer and the UI. Field
names must stay exactly as they are: the desktop front-end and the
portal both read these four keys.
"""

from __future__ import annotations
from typing import Any, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

SUMMARY_FALLBACK = "Document processed successfully"

Confidence = Literal["low", "medium", "high"]
Mode = Literal["mock", "api"]


class SummaryResult(BaseModel):
    """
    Structured summary handed to a procurement official.

    All four fields are required: a remote reply missing any of them is
    rejected rather than padded with defaults.
    """
    short_summary: str
    relevance_to_officials: List[str]
    action_items: List[str]
    confidence_estimate: Confidence

    @field_validator("short_summary")
    @classmethod
    def summary_must_not_be_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("short_summary cannot be empty or whitespace")
        return v

    @field_validator("confidence_estimate", mode="before")
    @classmethod
    def normalize_confidence(cls, v: Any) -> Any:
        # Remote models like to answer "High" or " medium".
        if isinstance(v, str):
            return v.strip().lower()
        return v


class SummaryRequest(BaseModel):
    text: str
    mode: Mode = Field(default="mock")


class QueryRequest(BaseModel):
    text: str
    prompt: str
    mode: Mode = Field(default="mock")


class QueryResponse(BaseModel):
    """Either a quick answer or, when the prompt is generic, a full summary."""
    prompt: str
    answer: Optional[str] = Field(default=None)
    summary: Optional[SummaryResult] = Field(default=None)


class DocumentSummaryResponse(BaseModel):
    filename: str
    characters: int
    text: str
    summary: SummaryResult
