# engine.py

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError

from config import Settings, load_settings
from errors import (
    EndpointNotFound,
    GenericServiceError,
    RateLimited,
    Unauthorized,
)
from models import (
    RISK_LEVELS,
    Finding,
    ParsedEmpty,
    ParsedOk,
    ParseFailure,
    ParseResult,
    RiskReport,
    to_findings,
)

logger = logging.getLogger(__name__)

# Only this prefix of a document is sent for analysis.
MAX_INPUT_CHARS = 15_000


# -----------------------
# PROMPT & OUTPUT SCHEMA
# -----------------------

PROMPT_TEMPLATE = """
You are an expert legal AI assistant. Your job is to analyze the following contract text and identify risky clauses.

For each risk found, provide:
1. The exact short quote from the text ("phrase").
2. A risk level ("High", "Medium", "Low").
3. A category (e.g., "Liability", "Privacy", "Termination", "Dispute", "IP").
4. A technical legal explanation ("explanation").
5. A "plainEnglish" translation for a non-lawyer that a 10-year-old could understand.

Analyze strictly. If the text is safe, return an empty "risks" array.

Contract Text:
"{text}"
"""

RISK_FIELDS = ["phrase", "level", "category", "explanation", "plainEnglish"]

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "risks": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "phrase": {"type": "STRING"},
                    "level": {"type": "STRING", "enum": list(RISK_LEVELS)},
                    "category": {"type": "STRING"},
                    "explanation": {"type": "STRING"},
                    "plainEnglish": {"type": "STRING"},
                },
                "required": RISK_FIELDS,
            },
        }
    },
    "required": ["risks"],
}


def truncate(text: str) -> str:
    return text[:MAX_INPUT_CHARS]


def is_truncated(text: str) -> bool:
    return len(text) > MAX_INPUT_CHARS


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=truncate(text))


def build_request_body(prompt: str) -> Dict[str, Any]:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


# -----------------------
# RESPONSE HANDLING
# -----------------------

def raise_for_status(response: requests.Response) -> None:
    """Map a non-success status to the matching analysis error."""
    status = response.status_code
    if 200 <= status < 300:
        return

    try:
        detail = response.json()
    except ValueError:
        detail = response.text
    logger.error("Gemini API error %s: %s", status, detail)

    if status == 429:
        raise RateLimited("Too many requests! Please wait 1 minute and retry.", status)
    if status == 404:
        raise EndpointNotFound("Model not found. Check your API key.", status)
    if status in (401, 403):
        raise Unauthorized("Request was not authorized. Check your API key.", status)
    raise GenericServiceError(f"API Error: {response.reason or status}", status)


def _structured_text(body: Any) -> Optional[str]:
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


def parse_response(body: Any) -> ParseResult:
    """Read the {risks: [...]} payload out of a generateContent response body."""
    text = _structured_text(body)
    if text is None:
        return ParsedEmpty()

    try:
        report = RiskReport.model_validate_json(text)
    except ValidationError as exc:
        return ParseFailure(reason=str(exc))
    return ParsedOk(findings=to_findings(report))


def findings_from_result(result: ParseResult) -> List[Finding]:
    if isinstance(result, ParsedOk):
        return result.findings
    if isinstance(result, ParseFailure):
        logger.warning("Discarding malformed analysis payload: %s", result.reason)
    else:
        logger.info("Analysis response carried no structured payload")
    return []


# -----------------------
# CLIENT
# -----------------------

class RiskAnalysisClient:
    """One-shot generateContent exchange with Gemini."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()

    def analyze(self, contract_text: str) -> List[Finding]:
        if is_truncated(contract_text):
            logger.info(
                "Contract has %d characters; analysing the first %d",
                len(contract_text),
                MAX_INPUT_CHARS,
            )

        payload = build_request_body(build_prompt(contract_text))
        try:
            response = self.session.post(
                self.settings.endpoint,
                params={"key": self.settings.api_key},
                json=payload,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Gemini request failed: %s", exc.__class__.__name__)
            raise GenericServiceError(f"API Error: could not reach the service ({exc.__class__.__name__})") from exc

        raise_for_status(response)

        try:
            body = response.json()
        except ValueError:
            body = None
        findings = findings_from_result(parse_response(body))
        logger.info("Analysis returned %d finding(s)", len(findings))
        return findings


# -----------------------
# CONTRACT ANALYSIS FUNCTION
# -----------------------

def analyze(contract_text: str, settings: Optional[Settings] = None) -> List[Finding]:
    """Analyse contract text with the configured credential.

    Raises ConfigurationError before touching the network when no usable
    API key is configured.
    """
    client = RiskAnalysisClient(settings or load_settings())
    return client.analyze(contract_text)
