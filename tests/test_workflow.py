"""Tests for the scan workflow: phases, resets, re-entrancy, stale results."""

from __future__ import annotations

import pytest

from engine import MAX_INPUT_CHARS
from errors import ConfigurationError, ExtractionError, RateLimited
from samples import DEFAULT_CONTRACT, DEFAULT_TITLE
from scoring import score
from workflow import Phase, ScanState

from conftest import FakePdfBackend, make_finding


def test_initial_state():
    state = ScanState()
    assert state.phase == Phase.IDLE
    assert state.document_title == DEFAULT_TITLE
    assert state.document_text == DEFAULT_CONTRACT
    assert state.findings == []
    assert state.score == 100
    assert state.last_error is None


# -----------------------
# Scanning
# -----------------------

@pytest.mark.parametrize("text", ["", "   \n\t "])
def test_blank_text_is_noop(state, make_controller, text):
    calls = []
    controller = make_controller(analyzer=lambda t: calls.append(t) or [])
    controller.edit_text(text)

    assert controller.scan() is False
    assert state.phase == Phase.IDLE
    assert calls == []


def test_success_sets_findings_and_score(state, make_controller):
    controller = make_controller(analyzer=lambda text: [make_finding("High")])
    assert controller.scan() is True

    assert state.phase == Phase.READY
    assert len(state.findings) == 1
    assert state.findings[0].id
    assert state.score == 85
    assert state.last_error is None


def test_ready_state_is_consistent(state, make_controller):
    found = [make_finding("High"), make_finding("Medium"), make_finding("Low"), make_finding("Low")]
    make_controller(analyzer=lambda text: found).scan()
    assert state.phase == Phase.READY
    assert state.score == score(state.findings) == 100 - 15 - 8 - 6


def test_rate_limited_fails(state, make_controller):
    def limited(text):
        raise RateLimited("Too many requests! Please wait 1 minute and retry.", 429)

    make_controller(analyzer=limited).scan()

    assert state.phase == Phase.FAILED
    assert "wait" in state.last_error
    assert state.findings == []
    assert state.score == 100


def test_configuration_error_fails_scan(state, make_controller):
    def unconfigured(text):
        raise ConfigurationError("Missing API key.")

    make_controller(analyzer=unconfigured).scan()
    assert state.phase == Phase.FAILED
    assert state.last_error == "Missing API key."


def test_unexpected_error_fails_scan(state, make_controller):
    def broken(text):
        raise KeyError("boom")

    make_controller(analyzer=broken).scan()
    assert state.phase == Phase.FAILED
    assert "Failed to analyze contract" in state.last_error


def test_empty_result_is_ready_not_failed(state, make_controller):
    make_controller(analyzer=lambda text: []).scan()
    assert state.phase == Phase.READY
    assert state.findings == []
    assert state.score == 100


def test_failed_then_rescan_clears_error(state, make_controller):
    results = iter([RateLimited("slow down", 429), [make_finding("Low")]])

    def analyzer(text):
        item = next(results)
        if isinstance(item, Exception):
            raise item
        return item

    controller = make_controller(analyzer=analyzer)
    controller.scan()
    assert state.phase == Phase.FAILED

    controller.scan()
    assert state.phase == Phase.READY
    assert state.last_error is None
    assert state.score == 97


def test_ready_then_failed_resets_findings(state, make_controller):
    results = iter([[make_finding("High")], RateLimited("slow down", 429)])

    def analyzer(text):
        item = next(results)
        if isinstance(item, Exception):
            raise item
        return item

    controller = make_controller(analyzer=analyzer)
    controller.scan()
    assert state.score == 85

    controller.scan()
    assert state.phase == Phase.FAILED
    assert state.findings == []
    assert state.score == 100


def test_entry_resets_before_analysis(state, make_controller):
    seen = {}

    def analyzer(text):
        seen.update(phase=state.phase, score=state.score, findings=list(state.findings), error=state.last_error)
        return []

    state.findings = [make_finding("High")]
    state.score = 85
    state.phase = Phase.FAILED
    state.last_error = "old"
    make_controller(analyzer=analyzer).scan()

    assert seen == {"phase": Phase.ANALYZING, "score": 100, "findings": [], "error": None}


def test_second_scan_while_analyzing_is_ignored(state, make_controller):
    calls = []
    controller = None

    def analyzer(text):
        calls.append(text)
        assert controller.scan() is False
        assert state.phase == Phase.ANALYZING
        return [make_finding("Medium")]

    controller = make_controller(analyzer=analyzer)
    controller.scan()

    assert len(calls) == 1
    assert state.phase == Phase.READY
    assert state.score == 92


def test_scan_ignored_while_extracting(state, make_controller):
    calls = []
    controller = make_controller(analyzer=lambda t: calls.append(t) or [])
    state.phase = Phase.EXTRACTING
    assert controller.scan() is False
    assert calls == []
    assert state.phase == Phase.EXTRACTING


def test_long_text_flags_truncation(state, make_controller):
    controller = make_controller()
    controller.edit_text("x" * (MAX_INPUT_CHARS + 1))
    controller.scan()
    assert state.truncated is True
    assert "15,000" in state.notice

    controller.edit_text("short")
    controller.scan()
    assert state.truncated is False
    assert state.notice is None


def test_edit_during_analysis_applies_stale_result(state, make_controller):
    """Known sharp edge: results are applied even if the text changed mid-scan."""
    controller = None

    def analyzer(text):
        controller.edit_text("completely different text")
        return [make_finding("High")]

    controller = make_controller(analyzer=analyzer)
    controller.edit_text("original text")
    controller.scan()

    assert state.phase == Phase.READY
    assert state.score == 85
    assert state.analyzed_text == "original text"
    assert controller.is_stale


def test_not_stale_before_any_scan(make_controller):
    assert make_controller().is_stale is False


# -----------------------
# PDF loading
# -----------------------

def test_load_pdf_replaces_text_and_title(state, make_controller):
    controller = make_controller(backend=FakePdfBackend(pages=["page one", "page two"]))
    assert controller.load_pdf("Lease.pdf", "application/pdf", b"%PDF") is True

    assert state.phase == Phase.IDLE
    assert state.document_text == "page one\n\npage two"
    assert state.document_title == "Lease"
    assert state.file_name == "Lease.pdf"


def test_load_non_pdf_rejected(state, make_controller):
    backend = FakePdfBackend(pages=["ignored"])
    controller = make_controller(backend=backend)
    assert controller.load_pdf("notes.txt", "text/plain", b"hello") is False

    assert state.phase == Phase.IDLE
    assert state.document_text == DEFAULT_CONTRACT
    assert state.notice == "Please upload a PDF file."
    assert backend.requested == []


def test_password_protected_keeps_prior_text(state, make_controller):
    backend = FakePdfBackend(exc=ExtractionError("It might be password protected or scanned image only."))
    controller = make_controller(backend=backend)
    controller.edit_text("my pasted text")

    assert controller.load_pdf("locked.pdf", "application/pdf", b"%PDF") is False
    assert state.phase == Phase.IDLE
    assert state.document_text == "my pasted text"
    assert state.document_title == DEFAULT_TITLE
    assert "password protected" in state.notice


def test_library_not_ready_keeps_prior_text(state, make_controller):
    controller = make_controller(backend=FakePdfBackend(pages=["text"], ready=False))
    assert controller.load_pdf("a.pdf", "application/pdf", b"%PDF") is False
    assert state.phase == Phase.IDLE
    assert state.document_text == DEFAULT_CONTRACT
    assert "still loading" in state.notice


def test_load_pdf_ignored_while_analyzing(state, make_controller):
    backend = FakePdfBackend(pages=["new"])
    controller = make_controller(backend=backend)
    state.phase = Phase.ANALYZING
    assert controller.load_pdf("a.pdf", "application/pdf", b"%PDF") is False
    assert state.document_text == DEFAULT_CONTRACT
    assert backend.requested == []


def test_load_after_scan_clears_previous_results(state, make_controller):
    controller = make_controller(
        analyzer=lambda text: [make_finding("High")],
        backend=FakePdfBackend(pages=["new contract"]),
    )
    controller.scan()
    assert state.phase == Phase.READY

    controller.load_pdf("new.pdf", "application/pdf", b"%PDF")
    assert state.phase == Phase.IDLE
    assert state.findings == []
    assert state.score == 100


def test_failed_load_after_scan_keeps_results(state, make_controller):
    controller = make_controller(
        analyzer=lambda text: [make_finding("High")],
        backend=FakePdfBackend(pages=[""]),
    )
    controller.scan()
    controller.load_pdf("scan.pdf", "application/pdf", b"%PDF")

    assert state.phase == Phase.READY
    assert state.score == 85
    assert state.notice


def test_editing_text_clears_notice(state, make_controller):
    controller = make_controller(backend=FakePdfBackend(pages=["ignored"]))
    controller.load_pdf("notes.txt", "text/plain", b"hello")
    assert state.notice == "Please upload a PDF file."

    controller.edit_text(state.document_text)
    assert state.notice == "Please upload a PDF file."

    controller.edit_text("pasted contract")
    assert state.notice is None
