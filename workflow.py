# workflow.py

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from engine import MAX_INPUT_CHARS, is_truncated
from errors import ContractScanError
from ingest import EXTRACTION_HINT, extract, is_pdf_upload, title_from_filename
from models import Finding
from samples import DEFAULT_CONTRACT, DEFAULT_TITLE
from scoring import BASELINE_SCORE, score

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    IDLE = "Idle"
    EXTRACTING = "ExtractingDocument"
    ANALYZING = "Analyzing"
    READY = "Ready"
    FAILED = "Failed"


BUSY_PHASES = (Phase.EXTRACTING, Phase.ANALYZING)


@dataclass
class ScanState:
    document_title: str = DEFAULT_TITLE
    document_text: str = DEFAULT_CONTRACT
    findings: List[Finding] = field(default_factory=list)
    score: int = BASELINE_SCORE
    phase: Phase = Phase.IDLE
    last_error: Optional[str] = None
    notice: Optional[str] = None
    truncated: bool = False
    analyzed_text: Optional[str] = None
    file_name: Optional[str] = None


class ScanController:
    """Drives a single ScanState through ingestion, analysis and scoring.

    Not re-entrant: requests that arrive while an extraction or analysis is
    in flight are dropped.
    """

    def __init__(
        self,
        state: ScanState,
        analyzer: Callable[[str], List[Finding]],
        backend=None,
    ):
        self.state = state
        self.analyzer = analyzer
        self.backend = backend

    @property
    def is_busy(self) -> bool:
        return self.state.phase in BUSY_PHASES

    @property
    def is_stale(self) -> bool:
        """True when the text was edited after the last scan was submitted."""
        s = self.state
        return s.analyzed_text is not None and s.analyzed_text != s.document_text

    def edit_text(self, text: str) -> None:
        if text != self.state.document_text:
            self.clear_notice()
        self.state.document_text = text

    def edit_title(self, title: str) -> None:
        self.state.document_title = title

    def clear_notice(self) -> None:
        self.state.notice = None

    # -----------------------
    # Document ingestion
    # -----------------------

    def load_pdf(self, name: str, mime_type: Optional[str], data: bytes) -> bool:
        """Replace the document with the text of an uploaded PDF.

        Returns True when the document was replaced.
        """
        s = self.state
        if self.is_busy:
            logger.info("Ignoring upload of %s while %s", name, s.phase.value)
            return False
        if not is_pdf_upload(name, mime_type):
            s.notice = "Please upload a PDF file."
            return False

        previous = s.phase
        s.phase = Phase.EXTRACTING
        try:
            text = extract(data, self.backend)
        except ContractScanError as exc:
            logger.warning("Extraction of %s failed: %s", name, exc)
            s.notice = str(exc)
            s.phase = previous
            return False
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error extracting %s", name)
            s.notice = EXTRACTION_HINT
            s.phase = previous
            return False

        s.document_text = text
        s.document_title = title_from_filename(name)
        s.file_name = name
        s.findings = []
        s.score = BASELINE_SCORE
        s.last_error = None
        s.notice = None
        s.phase = Phase.IDLE
        return True

    # -----------------------
    # Analysis
    # -----------------------

    def scan(self) -> bool:
        """Analyse the current document text. Returns True if a scan ran."""
        s = self.state
        if self.is_busy:
            logger.info("Scan already in progress (%s); ignoring request", s.phase.value)
            return False

        text = s.document_text
        if not text.strip():
            return False

        s.phase = Phase.ANALYZING
        s.score = BASELINE_SCORE
        s.findings = []
        s.last_error = None
        s.analyzed_text = text
        s.truncated = is_truncated(text)
        s.notice = (
            f"Only the first {MAX_INPUT_CHARS:,} characters were analysed."
            if s.truncated
            else None
        )

        try:
            findings = self.analyzer(text)
        except ContractScanError as exc:
            logger.error("Analysis failed: %s", exc)
            self._fail(str(exc))
            return True
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error during analysis")
            self._fail(f"Failed to analyze contract: {exc}")
            return True

        s.findings, s.score = list(findings), score(findings)
        s.phase = Phase.READY
        return True

    def _fail(self, message: str) -> None:
        s = self.state
        s.findings = []
        s.score = BASELINE_SCORE
        s.last_error = message or "Failed to analyze contract."
        s.phase = Phase.FAILED
