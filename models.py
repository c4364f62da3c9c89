# models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import List, Literal, Union

from pydantic import BaseModel, Field

# -----------------------
# Risk levels
# -----------------------

RiskLevel = Literal["High", "Medium", "Low"]

RISK_LEVELS = ("High", "Medium", "Low")

# Display-only level for a clean document; analysis never emits it.
SAFE_LEVEL = "Safe"


# -----------------------
# Pydantic Models
# -----------------------

class RiskPayload(BaseModel):
    phrase: str = Field(min_length=1)
    level: RiskLevel
    category: str = Field(min_length=1)
    explanation: str = Field(min_length=1)
    plainEnglish: str = Field(min_length=1)


class Finding(RiskPayload):
    id: str = Field(min_length=1)


class RiskReport(BaseModel):
    risks: List[RiskPayload]


def new_finding_id() -> str:
    return uuid.uuid4().hex


def to_findings(report: RiskReport) -> List[Finding]:
    """Stamp every received risk with its own identifier."""
    return [Finding(id=new_finding_id(), **risk.model_dump()) for risk in report.risks]


# -----------------------
# Parse results
# -----------------------

@dataclass(frozen=True)
class ParsedOk:
    findings: List[Finding] = field(default_factory=list)


@dataclass(frozen=True)
class ParsedEmpty:
    pass


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[ParsedOk, ParsedEmpty, ParseFailure]
