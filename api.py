import logging
from typing import Dict, List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from engine import analyze, is_truncated
from errors import AnalysisError, ConfigurationError, RateLimited
from models import Finding
from scoring import risk_distribution, score, score_band

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Contract Scanner API",
    version="0.3.0",
    description=(
        "Contract risk scanning backed by Google Gemini.\n\n"
        "Outputs: findings (phrase, level, category, explanation, "
        "plainEnglish) and a 0-100 safety score."
    ),
)


class AnalyzeRequest(BaseModel):
    contract_text: str


class AnalyzeResponse(BaseModel):
    findings: List[Finding]
    score: int
    truncated: bool


class ScoreRequest(BaseModel):
    findings: List[Finding]


class ScoreResponse(BaseModel):
    score: int
    distribution: Dict[str, int]
    band: str


def _status_for(exc: AnalysisError) -> int:
    return 429 if isinstance(exc, RateLimited) else 502


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze_endpoint(request: AnalyzeRequest):
    """
    Run the risk scan and return findings with their safety score.
    """
    if not request.contract_text.strip():
        raise HTTPException(status_code=422, detail="contract_text is empty.")

    try:
        findings = analyze(request.contract_text)
    except ConfigurationError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except AnalysisError as exc:
        logger.warning("Analysis request failed: %s", exc)
        raise HTTPException(status_code=_status_for(exc), detail=str(exc)) from exc

    return AnalyzeResponse(
        findings=findings,
        score=score(findings),
        truncated=is_truncated(request.contract_text),
    )


@app.post("/score", response_model=ScoreResponse)
def score_endpoint(request: ScoreRequest):
    value = score(request.findings)
    return ScoreResponse(
        score=value,
        distribution=risk_distribution(request.findings),
        band=score_band(value),
    )
