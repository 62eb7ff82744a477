from __future__ import annotations
from typing import Dict, Any, NamedTuple, Optional
import json
import logging
import os

import requests

logger = logging.getLogger(__name__)

ANTHROPIC_API_URL = os.getenv("ANTHROPIC_API_URL", "https://api.anthropic.com/v1/messages")
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")
MODEL_NAME = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
MAX_TOKENS = 1500


class MissingInputError(ValueError):
    """Raised before any network I/O when the credential, question or report is missing."""


class QueryResult(NamedTuple):
    answer: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# -----------------------------------------------------------------------------
# Prompt
# -----------------------------------------------------------------------------
def build_prompt(report: str, question: str) -> str:
    return (
        "You are analyzing a complete supply chain dataset with Inbound (vendor deliveries), "
        "Outbound (customer orders), and Inventory (product catalog) data. \n\n"
        "Based on this comprehensive supply chain data summary, please answer the question "
        "with specific insights and actionable recommendations:\n\n"
        f"{report}\n\n"
        f"Question: {question}\n\n"
        "Provide a detailed answer with specific numbers and insights from the data. "
        "Format your response with clear headers using ## for main sections, "
        "and use bullet points where appropriate."
    )


def validate_query_inputs(api_key: Optional[str], question: Optional[str], report: Optional[str]) -> None:
    if not (question or "").strip() or not (api_key or "").strip():
        raise MissingInputError("Please enter both an API key and a query")
    if not report:
        raise MissingInputError("Please upload all three CSV files first")


# -----------------------------------------------------------------------------
# Response envelope
# -----------------------------------------------------------------------------
def extract_answer(envelope: Dict[str, Any]) -> QueryResult:
    """
    Pull the reply text out of a Messages API envelope.
    A CORS-proxy style wrapper {"contents": "<json>"} is unwrapped first.
    """
    data = envelope
    if isinstance(data, dict) and isinstance(data.get("contents"), str):
        data = json.loads(data["contents"])

    if not isinstance(data, dict):
        return QueryResult(error=f"Unexpected response format: {json.dumps(data)}")

    err = data.get("error")
    if err:
        msg = err.get("message") if isinstance(err, dict) else None
        return QueryResult(error=f"API Error: {msg or json.dumps(err)}")

    content = data.get("content")
    if isinstance(content, list) and content and isinstance(content[0], dict) and content[0].get("text"):
        return QueryResult(answer=content[0]["text"])

    return QueryResult(error=f"Unexpected response format: {json.dumps(data)}")


# -----------------------------------------------------------------------------
# Q&A over the KPI report
# -----------------------------------------------------------------------------
def ask_question(
    api_key: str,
    question: str,
    report: Optional[str],
    session: Optional[requests.Session] = None,
    model: str = MODEL_NAME,
    url: str = ANTHROPIC_API_URL,
) -> QueryResult:
    """
    One POST to the Messages endpoint; no retry, no timeout, no streaming.
    Raises MissingInputError on missing inputs; every other failure comes back
    in QueryResult.error.
    """
    validate_query_inputs(api_key, question, report)

    body = {
        "model": model,
        "max_tokens": MAX_TOKENS,
        "messages": [{"role": "user", "content": build_prompt(report, question)}],
    }
    headers = {
        "content-type": "application/json",
        "x-api-key": api_key.strip(),
        "anthropic-version": ANTHROPIC_VERSION,
    }
    http = session if session is not None else requests
    logger.info("Sending KPI question to %s (model=%s)", url, model)
    try:
        resp = http.post(url, headers=headers, json=body)
        result = extract_answer(resp.json())
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("KPI question failed: %s", e)
        return QueryResult(error=f"Error: {e}")

    if result.ok:
        logger.info("Received answer (%d chars)", len(result.answer))
    else:
        logger.warning("Provider returned an error: %s", result.error)
    return result
