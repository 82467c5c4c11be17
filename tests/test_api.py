"""
test_api.py — FastAPI endpoint tests via TestClient.

API mode is exercised with a fake remote summarizer installed on the
app module, so these tests never need an OpenRouter key.

Run with:
    python tests/test_api.py
    python -m pytest tests/test_api.py -v
"""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import httpx
from fastapi.testclient import TestClient

import api.main as api_main
from tender_summary.llm_summarizer import APIStatusError, MissingAPIKeyError
from tender_summary.schemas import SummaryResult

client = TestClient(api_main.app)

TENDER_TEXT = (
    "Tender for supply of 40 desktops. Last date 28/02/2024. "
    "EMD ₹50,000. Queries: stores@nic.in. Minimum turnover 2 crore."
)


def _with_remote(fake):
    def wrapper(test_fn):
        def run():
            api_main.remote_summarizer = fake
            try:
                test_fn()
            finally:
                api_main.remote_summarizer = None
        run.__name__ = test_fn.__name__
        return run
    return wrapper


def _raise(exc):
    def fake(text):
        raise exc
    return fake


def _remote_result(summary="remote summary"):
    return SummaryResult(
        short_summary=summary,
        relevance_to_officials=["Estimated value ₹50,00,000"],
        action_items=["Prepare EMD"],
        confidence_estimate="medium",
    )


def _slow_remote(text):
    # stands in for a slow OpenRouter round trip
    time.sleep(0.5)
    return _remote_result("slow remote summary")


def _upload_txt(mode):
    return client.post(
        "/upload",
        params={"mode": mode},
        files={"file": ("notice.txt", TENDER_TEXT.encode("utf-8"), "text/plain")},
    )


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    print("  ✓ test_health")


def test_summarize_mock():
    resp = client.post("/summarize", json={"text": TENDER_TEXT})
    assert resp.status_code == 200
    data = resp.json()
    assert set(data) == {
        "short_summary", "relevance_to_officials",
        "action_items", "confidence_estimate",
    }
    assert data["confidence_estimate"] == "high"
    assert len(data["relevance_to_officials"]) == 5
    print("  ✓ test_summarize_mock")


def test_summarize_empty_text():
    resp = client.post("/summarize", json={"text": ""})
    assert resp.status_code == 200
    assert resp.json()["short_summary"] == "Document processed successfully"
    assert resp.json()["confidence_estimate"] == "low"
    print("  ✓ test_summarize_empty_text")


def test_summarize_rejects_unknown_mode():
    resp = client.post("/summarize", json={"text": "x", "mode": "magic"})
    assert resp.status_code == 422
    print("  ✓ test_summarize_rejects_unknown_mode")


@_with_remote(lambda text: _remote_result())
def test_summarize_api_mode():
    resp = client.post("/summarize", json={"text": TENDER_TEXT, "mode": "api"})
    assert resp.status_code == 200
    assert resp.json()["short_summary"] == "remote summary"
    assert resp.json()["confidence_estimate"] == "medium"
    print("  ✓ test_summarize_api_mode")


@_with_remote(_raise(MissingAPIKeyError("OpenRouter API key not found.")))
def test_summarize_api_mode_missing_key():
    resp = client.post("/summarize", json={"text": "x", "mode": "api"})
    assert resp.status_code == 503
    assert resp.json()["detail"] == "OpenRouter API key not found."
    print("  ✓ test_summarize_api_mode_missing_key")


@_with_remote(_raise(APIStatusError(500)))
def test_summarize_api_mode_upstream_failure():
    resp = client.post("/summarize", json={"text": "x", "mode": "api"})
    assert resp.status_code == 502
    assert resp.json()["detail"] == "API request failed with status: 500"
    print("  ✓ test_summarize_api_mode_upstream_failure")


def test_query_quick_answer():
    resp = client.post("/query", json={"text": TENDER_TEXT, "prompt": "What is the deadline?"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["answer"] == "**Deadlines Found:**\n• 28/02/2024"
    assert data["summary"] is None
    print("  ✓ test_query_quick_answer")


def test_query_falls_back_to_summary():
    resp = client.post("/query", json={"text": TENDER_TEXT, "prompt": "Give me an overview"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["answer"] is None
    assert data["summary"]["confidence_estimate"] == "high"
    print("  ✓ test_query_falls_back_to_summary")


@_with_remote(_raise(MissingAPIKeyError("OpenRouter API key not found.")))
def test_query_api_mode_missing_key():
    # matches no quick-answer intent, so the remote summarizer runs
    resp = client.post("/query", json={
        "text": TENDER_TEXT, "prompt": "Give me an overview", "mode": "api",
    })
    assert resp.status_code == 503
    assert resp.json()["detail"] == "OpenRouter API key not found."
    print("  ✓ test_query_api_mode_missing_key")


@_with_remote(_raise(APIStatusError(500)))
def test_query_api_mode_upstream_failure():
    resp = client.post("/query", json={
        "text": TENDER_TEXT, "prompt": "Give me an overview", "mode": "api",
    })
    assert resp.status_code == 502
    assert resp.json()["detail"] == "API request failed with status: 500"
    print("  ✓ test_query_api_mode_upstream_failure")


def test_upload_text_file():
    resp = client.post(
        "/upload",
        files={"file": ("notice.txt", TENDER_TEXT.encode("utf-8"), "text/plain")},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["filename"] == "notice.txt"
    assert data["text"] == TENDER_TEXT
    assert data["characters"] == len(TENDER_TEXT)
    assert data["summary"]["confidence_estimate"] == "high"
    print("  ✓ test_upload_text_file")


def test_upload_rejects_unsupported_file():
    resp = client.post(
        "/upload",
        files={"file": ("payload.exe", b"MZ\x90\x00", "application/octet-stream")},
    )
    assert resp.status_code == 400
    assert "Unsupported format" in resp.json()["detail"]
    print("  ✓ test_upload_rejects_unsupported_file")


def test_upload_rejects_corrupt_pdf():
    resp = client.post(
        "/upload",
        files={"file": ("bad.pdf", b"not a pdf at all", "application/pdf")},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Could not read ")
    print("  ✓ test_upload_rejects_corrupt_pdf")


def test_upload_rejects_corrupt_docx():
    resp = client.post(
        "/upload",
        files={"file": ("bad.docx", b"junk", "application/octet-stream")},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Could not read ")
    print("  ✓ test_upload_rejects_corrupt_docx")


@_with_remote(lambda text: _remote_result())
def test_upload_api_mode():
    resp = _upload_txt("api")
    assert resp.status_code == 200
    assert resp.json()["summary"]["short_summary"] == "remote summary"
    print("  ✓ test_upload_api_mode")


@_with_remote(_raise(MissingAPIKeyError("OpenRouter API key not found.")))
def test_upload_api_mode_missing_key():
    resp = _upload_txt("api")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "OpenRouter API key not found."
    print("  ✓ test_upload_api_mode_missing_key")


@_with_remote(_raise(APIStatusError(500)))
def test_upload_api_mode_upstream_failure():
    resp = _upload_txt("api")
    assert resp.status_code == 502
    assert resp.json()["detail"] == "API request failed with status: 500"
    print("  ✓ test_upload_api_mode_upstream_failure")


@_with_remote(_slow_remote)
def test_upload_does_not_block_event_loop():
    """A slow remote summary must leave the loop free to serve other work."""

    async def scenario():
        gaps = []
        done = asyncio.Event()

        async def ticker():
            last = time.monotonic()
            while not done.is_set():
                await asyncio.sleep(0.05)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        transport = httpx.ASGITransport(app=api_main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            tick = asyncio.create_task(ticker())
            resp = await ac.post(
                "/upload",
                params={"mode": "api"},
                files={"file": ("notice.txt", TENDER_TEXT.encode("utf-8"), "text/plain")},
            )
            done.set()
            await tick
        return resp, gaps

    resp, gaps = asyncio.run(scenario())
    assert resp.status_code == 200
    assert resp.json()["summary"]["short_summary"] == "slow remote summary"
    assert gaps and max(gaps) < 0.3, f"event loop stalled: {gaps}"
    print("  ✓ test_upload_does_not_block_event_loop")


def run_all_tests():
    print("\n" + "=" * 60)
    print("  Tender Summary — HTTP API tests")
    print("=" * 60 + "\n")

    tests = [
        test_health,
        test_summarize_mock,
        test_summarize_empty_text,
        test_summarize_rejects_unknown_mode,
        test_summarize_api_mode,
        test_summarize_api_mode_missing_key,
        test_summarize_api_mode_upstream_failure,
        test_query_quick_answer,
        test_query_falls_back_to_summary,
        test_query_api_mode_missing_key,
        test_query_api_mode_upstream_failure,
        test_upload_text_file,
        test_upload_rejects_unsupported_file,
        test_upload_rejects_corrupt_pdf,
        test_upload_rejects_corrupt_docx,
        test_upload_api_mode,
        test_upload_api_mode_missing_key,
        test_upload_api_mode_upstream_failure,
        test_upload_does_not_block_event_loop,
    ]

    passed = 0
    failed = 0
    for test_fn in tests:
        try:
            test_fn()
            passed += 1
        except Exception as exc:
            failed += 1
            print(f"  ✗ {test_fn.__name__} FAILED: {exc}")

    print(f"\n  Results: {passed} passed, {failed} failed, {len(tests)} total\n")
    return failed == 0


if __name__ == "__main__":
    sys.exit(0 if run_all_tests() else 1)
